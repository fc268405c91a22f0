from .identity import IdentityStore, validate_registration

__all__ = ["IdentityStore", "validate_registration"]
