from .client import BitbucketClient

__all__ = ["BitbucketClient"]
