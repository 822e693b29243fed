"""Account context supplying the tenant id for statement scoping."""

from __future__ import annotations

from abc import ABC, abstractmethod


class AccountContext(ABC):
	"""Source of the current account id."""

	@abstractmethod
	def get_current_account_id(self) -> int:
		"""Return the id every statement is scoped to."""


class StaticAccountContext(AccountContext):
	"""Fixed account, for the single-user setup."""

	def __init__(self, account_id: int = 1) -> None:
		self._account_id = account_id

	def get_current_account_id(self) -> int:
		return self._account_id
