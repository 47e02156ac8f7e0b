from .helix import HelixIdentityResolver  # noqa: F401

__all__ = ["HelixIdentityResolver"]
