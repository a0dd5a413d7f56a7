class RecoveryError(Exception):
    """Base class for everything this package raises."""


# -------------------- Document level (fatal to a batch) --------------------

class InputError(RecoveryError):
    """Missing/unreadable export file or missing password."""


class SchemaError(RecoveryError):
    """The export does not match any known storage layout."""


# -------------------- Record level (absorbed per account) --------------------

class DecryptionError(RecoveryError):
    pass


class AuthenticationError(DecryptionError):
    """Wrong password, or ciphertext that fails the GCM tag check."""


class FormatError(DecryptionError):
    """Envelope is not a browser-passworder blob."""


class EncodingError(RecoveryError):
    """Entropy that can't be turned into a phrase (empty, too short, not base64/hex)."""
