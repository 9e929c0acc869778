"""Class plan normalizer: turn instructor class plans into timed, validated plans."""

__version__ = "0.1.0"
