"""
Dispute Engine - Domain Exceptions

Most of these are recovered where they are raised; see the callers for the
fallback taken in each case.
"""


class DisputeEngineError(Exception):
    """Base exception for the dispute engine"""
    pass


class ParseError(DisputeEngineError):
    """Uploaded file could not be turned into usable report text"""
    pass


class UnsupportedFormatError(ParseError):
    """File type is not one we can extract text from"""
    pass


class FileValidationError(ParseError):
    """File rejected before extraction (empty, oversized or dangerous content)"""
    pass


class FileTooLargeError(FileValidationError):
    """File exceeds the configured upload size"""
    pass


class ResolutionError(DisputeEngineError):
    """Legal reference or sample language lookup failed"""
    pass


class GenerationError(DisputeEngineError):
    """Letter template could not be rendered"""
    pass


class PersistenceError(DisputeEngineError):
    """Saving or loading letters failed"""
    pass


class InvalidStatusTransition(DisputeEngineError):
    """Letter status change not allowed from the current status"""
    pass


class SessionBusyError(DisputeEngineError):
    """An upload is already being processed for this session"""
    pass


class SessionNotFoundError(DisputeEngineError):
    """No session exists for the given id"""
    pass
