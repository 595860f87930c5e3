"""
Exceptions raised while building a chain spec.

Every error is fatal: the caller must not publish or fall back to a partially
built spec. Input-shape errors are packaging mistakes in the genesis inputs,
missing-resource errors are absent or unreadable static artifacts.
"""


class GenesisError(Exception):
    """Base class for all chain spec construction failures."""
    pass


class InputShapeError(GenesisError):
    """Raised when genesis inputs are malformed or mutually inconsistent."""
    pass


class MissingResourceError(GenesisError):
    """Raised when a static artifact needed for the build is unavailable."""
    pass


# --- Input shape ---

class InvalidSeed(InputShapeError):
    pass


class DuplicateAssetId(InputShapeError):
    pass


class ReservedAssetId(InputShapeError):
    """Raised when an asset descriptor reuses the native currency id."""
    pass


class UnknownAssetReference(InputShapeError):
    pass


class IncompleteAuthority(InputShapeError):
    pass


class DuplicateAuthority(InputShapeError):
    pass


class NegativeEndowment(InputShapeError):
    pass


class DuplicateEndowment(InputShapeError):
    pass


class InvalidEndowmentAmount(InputShapeError):
    """Raised when an endowment amount is not an integer in the smallest unit."""
    pass


class UnendowedValidator(InputShapeError):
    """Raised when a validator stash holds no native balance at genesis."""
    pass


class InvalidAnchor(InputShapeError):
    pass


class InvalidTrusteeKey(InputShapeError):
    pass


class InsufficientTrustees(InputShapeError):
    pass


class AdminKeyMismatch(InputShapeError):
    """Raised when the admin key presence disagrees with the profile."""
    pass


class UnknownProfile(InputShapeError):
    pass


# --- Missing resources ---

class MissingRuntimeImage(MissingResourceError):
    pass


class NoTrusteesForChain(MissingResourceError):
    pass


class MalformedSnapshot(MissingResourceError):
    pass


class MissingResource(MissingResourceError):
    pass
