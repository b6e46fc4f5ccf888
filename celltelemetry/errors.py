class TelemetryError(Exception):
    """Base class for hard failures raised by celltelemetry."""


class InvalidInputError(TelemetryError, TypeError):
    """Raised when decode() is handed something that is not text at all."""


class UndecodableInputError(TelemetryError, ValueError):
    """Raised for bytes that are not valid UTF-8 while strict decoding is on."""


class MalformedLineError(TelemetryError):
    """
    One recognised +XXX: line could not be decoded (unknown radio type,
    wrong field count, missing channel number). decode() turns it into a
    DecodeWarning and moves on to the next line.
    """
