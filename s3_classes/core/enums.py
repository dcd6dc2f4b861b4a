from enum import Enum


class AddressingStyle(str, Enum):
    """S3 bucket addressing style passed to botocore."""

    AUTO = "auto"
    VIRTUAL = "virtual"
    PATH = "path"


class RetryMode(str, Enum):
    """botocore retry modes. Retries are left entirely to the SDK."""

    LEGACY = "legacy"
    STANDARD = "standard"
    ADAPTIVE = "adaptive"
