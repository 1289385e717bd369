"""Admin endpoints."""

from .errors import error_response
from .resource import BaseResource
from .types import CoreSettings, Model, Result, User


class AdminClient(BaseResource):
    """Operations on ``/api/v1/admin``. Requires an admin API key."""

    async def get_all_users(self) -> Result[list[User]]:
        """List every user on the instance."""
        res = await self._request("GET", "/users")
        if not res.is_success:
            return error_response(res)
        return Result.ok([User.model_validate(u) for u in res.json()])

    async def get_core_settings(self) -> Result[CoreSettings]:
        """Get the instance-wide settings."""
        res = await self._request("GET", "/dialoqbase-settings")
        if not res.is_success:
            return error_response(res)
        return Result.ok(CoreSettings.model_validate(res.json()))

    async def update_core_settings(self, settings: CoreSettings) -> Result[bool]:
        """Replace the instance-wide settings.

        Args:
            settings: The new settings.

        Returns:
            ``True`` on success.
        """
        res = await self._request(
            "POST",
            "/dialoqbase-settings",
            json=settings.model_dump(by_alias=True),
        )
        if not res.is_success:
            return error_response(res)
        return Result.ok(True)

    async def get_all_models(self) -> Result[list[Model]]:
        """List the models configured on the instance."""
        res = await self._request("GET", "/models")
        if not res.is_success:
            return error_response(res)
        return Result.ok([Model.model_validate(m) for m in res.json()["data"]])
