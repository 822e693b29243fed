"""Tagged value codec for the pipeline wire format.

Every SQL value on the wire is an object of the form ``{"type": ..., "value": ...}``
where ``type`` is one of ``null``, ``integer``, ``float``, ``text`` or ``blob``.
Integers travel as decimal strings so that 64-bit ids survive JSON number
precision; blobs travel as base64 text under the ``base64`` key.
"""

from __future__ import annotations

import base64
import logging
from decimal import Decimal
from typing import Any, Literal

from pydantic import BaseModel

logger = logging.getLogger(__name__)

ValueType = Literal["null", "integer", "float", "text", "blob"]


def encode_value(value: Any) -> dict[str, Any]:
	"""Encode a native scalar as a tagged wire argument."""
	if value is None:
		return {"type": "null"}
	# bool is an int subclass, check it first
	if isinstance(value, bool):
		return {"type": "integer", "value": "1" if value else "0"}
	if isinstance(value, int):
		return {"type": "integer", "value": str(value)}
	if isinstance(value, (float, Decimal)):
		return {"type": "float", "value": float(value)}
	if isinstance(value, (bytes, bytearray, memoryview)):
		return {"type": "blob", "base64": base64.b64encode(bytes(value)).decode("ascii")}
	return {"type": "text", "value": str(value)}


def encode_args(values: tuple[Any, ...] | list[Any]) -> list[dict[str, Any]]:
	return [encode_value(v) for v in values]


class Value(BaseModel, extra="ignore"):
	"""A single tagged value decoded from a result row."""

	type: ValueType = "null"
	value: Any = None
	base64: str | None = None

	@property
	def is_null(self) -> bool:
		return self.type == "null"

	def as_str(self) -> str:
		if self.type in ("text", "integer"):
			return "" if self.value is None else str(self.value)
		if self.type == "float":
			return "" if self.value is None else repr(float(self.value))
		if self.type == "blob":
			return self.base64 or ""
		return ""

	def as_int(self) -> int:
		"""Decode as an integer.

		Integer text that does not parse yields 0 and a warning instead of an
		exception; float values are truncated toward zero.
		"""
		if self.type == "integer":
			raw = self.value if self.value is not None else "0"
			try:
				return int(raw)
			except (TypeError, ValueError):
				logger.warning("Unparsable integer value %r decoded as 0", raw)
				return 0
		if self.type == "float":
			return int(float(self.value or 0))
		return 0

	def as_optional_int(self) -> int | None:
		if self.type == "null":
			return None
		return self.as_int()

	def as_bool(self) -> bool:
		if self.type == "integer":
			return str(self.value) == "1"
		return False

	def as_float(self) -> float:
		if self.type in ("float", "integer"):
			try:
				return float(self.value)
			except (TypeError, ValueError):
				logger.warning("Unparsable numeric value %r decoded as 0.0", self.value)
				return 0.0
		return 0.0

	def as_bytes(self) -> bytes:
		if self.type == "blob" and self.base64:
			return base64.b64decode(self.base64)
		return b""
