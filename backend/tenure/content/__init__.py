from tenure.content.onet import OnetContentProvider
from tenure.content.provider import ContentProvider
from tenure.content.provider_fake import ContentProviderFake

__all__ = ["ContentProvider", "ContentProviderFake", "OnetContentProvider"]
