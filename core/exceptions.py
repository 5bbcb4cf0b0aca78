"""
Custom exceptions for the dump loading pipeline with structured error context.

This module provides the exception hierarchy used by every pipeline stage.
Each exception carries context information (file, table, element, batch)
for logging and for the per-file result reported by the runner.

Exception Hierarchy:
    ETLException (base)
    ├── ExtractionError
    │   ├── IOFailure
    │   ├── MalformedInput
    │   ├── TruncatedInput
    │   └── UnknownEntityKind
    ├── TransformationError
    │   └── FieldParseFailure
    └── LoadError
        └── LoadFailure

Propagation:
    FieldParseFailure is recovered inside the record builder (the field is
    nulled) unless the field parse policy is "abort". Every other error
    aborts the current file but not the run over the remaining files.
"""

from typing import Optional, Dict, Any
from datetime import datetime, timezone


class ETLException(Exception):
    """
    Base exception for all pipeline errors.

    Attributes:
        message: Human-readable error message
        context: Additional context information (file, table, element, ...)
        original_exception: The original exception that was caught (if any)
    """

    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        original_exception: Optional[Exception] = None
    ):
        self.message = message
        self.context = context or {}
        self.original_exception = original_exception
        self.timestamp = datetime.now(timezone.utc)

        # Add timestamp to context
        self.context["error_timestamp"] = self.timestamp.isoformat()

        # Chain original exception if provided
        super().__init__(message)
        if original_exception:
            self.__cause__ = original_exception

    def __str__(self) -> str:
        """Format error message with context."""
        base_msg = f"{self.__class__.__name__}: {self.message}"

        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            base_msg += f" | Context: {context_str}"

        if self.original_exception:
            base_msg += f" | Caused by: {type(self.original_exception).__name__}: {str(self.original_exception)}"

        return base_msg

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging/storage."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "context": self.context,
            "timestamp": self.timestamp.isoformat(),
            "original_error": str(self.original_exception) if self.original_exception else None
        }


# ============================================================================
# Extraction Errors
# ============================================================================

class ExtractionError(ETLException):
    """Base exception for failures while reading and tokenizing a dump."""
    pass


class IOFailure(ExtractionError):
    """
    Raised when a dump file cannot be read or its compression frame is corrupt.

    Context should include:
        - file_path: Path to the dump file
        - bytes_read: Decompressed bytes delivered before the failure
    """
    pass


class MalformedInput(ExtractionError):
    """
    Raised when the markup is structurally invalid (unbalanced tags, junk).

    Context should include:
        - line: Line reported by the tokenizer (if available)
        - column: Column reported by the tokenizer (if available)
    """
    pass


class TruncatedInput(ExtractionError):
    """
    Raised when the event stream ends while an entity or the dump root is open.

    Context should include:
        - open_elements: Elements still open at end of stream
        - builder_state: Record builder state at end of stream
    """
    pass


class UnknownEntityKind(ExtractionError):
    """
    Raised when no entity schema matches a dump.

    Context should include:
        - root_element: Root element found in the dump
        - declared_kind: Entity kind requested by the caller (if any)
    """
    pass


# ============================================================================
# Transformation Errors
# ============================================================================

class TransformationError(ETLException):
    """Base exception for failures while building records from events."""
    pass


class FieldParseFailure(TransformationError):
    """
    Raised when a numeric field's text cannot be converted.

    Only escapes the record builder when the field parse policy is "abort".

    Context should include:
        - table_name: Table of the record being built
        - column_name: Target column
        - field_value: Offending text
    """
    pass


# ============================================================================
# Load Errors
# ============================================================================

class LoadError(ETLException):
    """Base exception for data loading failures."""
    pass


class LoadFailure(LoadError):
    """
    Raised when the target store rejects a batch.

    Context should include:
        - table_name: Name of the table
        - batch_index: Ordinal of the batch for that table (1-based)
        - batch_size: Number of rows in the rejected batch
    """

    def __init__(
        self,
        message: str,
        table_name: str,
        batch_index: int,
        context: Optional[Dict[str, Any]] = None,
        original_exception: Optional[Exception] = None
    ):
        context = dict(context or {})
        context.setdefault("table_name", table_name)
        context.setdefault("batch_index", batch_index)
        super().__init__(message, context, original_exception)
        self.table_name = table_name
        self.batch_index = batch_index
