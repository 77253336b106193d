"""Asynchronous yes/no gate used by destructive transitions."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Optional

from ..errors import UserCancelled


@dataclass(frozen=True)
class ConfirmRequest:
    """Prompt shown to the user before a destructive transition."""
    title: str
    message: str
    confirm_text: str = "Confirm"
    cancel_text: str = "Cancel"


Confirmer = Callable[[ConfirmRequest], Awaitable[bool]]


async def auto_confirm(request: ConfirmRequest) -> bool:
    return True


class ConfirmationGate:
    """Suspends a transition until the presentation layer answers."""

    def __init__(self, confirmer: Optional[Confirmer] = None):
        self.confirmer = confirmer or auto_confirm

    async def ask(self, request: ConfirmRequest) -> bool:
        return bool(await self.confirmer(request))

    async def require(self, request: ConfirmRequest) -> None:
        """
        Raises:
            UserCancelled: If the user declined
        """
        if not await self.ask(request):
            raise UserCancelled(prompt=request.title)


COMPLETE_ROUTE = ConfirmRequest(
    title="Complete Route",
    message="Are you sure you want to complete this route? This will save your "
            "progress and update the route statistics.",
    confirm_text="Complete",
)

CANCEL_ROUTE = ConfirmRequest(
    title="Cancel Route",
    message="Are you sure you want to cancel this route? Your progress will be lost.",
    confirm_text="Cancel Route",
    cancel_text="Keep Tracking",
)

DELETE_ROUTE = ConfirmRequest(
    title="Delete Route",
    message="Are you sure you want to delete this route? This action cannot be undone.",
    confirm_text="Delete",
)

MERGE_IMPORT = ConfirmRequest(
    title="Import Data",
    message="Do you want to merge the imported data with your existing data or replace it?",
    confirm_text="Merge",
    cancel_text="Replace",
)
