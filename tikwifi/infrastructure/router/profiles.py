"""
Security Profile Reconciler.

Converges the router's wireless security profiles to a desired
``(ssid, password, requires_password)`` intent.

Profiles this system owns carry the provenance tag
``wifi-manager:ssid=<ssid>`` in their comment. A mode change is done by
delete-then-create because RouterOS can keep stale key material when the
authentication mode of an existing profile is switched in place.
"""

from __future__ import annotations

import logging
from typing import Any

from ...core.errors import ApiError, NotFoundError, ParseError, RequestValidationError
from ...domain.models import PROFILE_COMMENT_PREFIX, SecurityMode, SecurityProfile
from .client import RouterClient, path_segment, router_error

logger = logging.getLogger(__name__)

PROFILES_PATH = "/interface/wireless/security-profiles"
PSK_AUTH_TYPES = "wpa-psk,wpa2-psk"
PROFILE_NAME_PREFIX = "client-"
PROFILE_SSID_CHARS = 20


def provenance_tag(ssid: str) -> str:
    return PROFILE_COMMENT_PREFIX + ssid


def ssid_from_tag(comment: str) -> str | None:
    """SSID stored in a provenance tag, None for any other comment."""
    if comment.startswith(PROFILE_COMMENT_PREFIX):
        return comment[len(PROFILE_COMMENT_PREFIX):]
    return None


def default_profile_name(ssid: str) -> str:
    """Deterministic profile name, short enough for the router's name field."""
    return PROFILE_NAME_PREFIX + ssid[:PROFILE_SSID_CHARS]


def known_networks(profiles: list[SecurityProfile]) -> list[dict[str, Any]]:
    """Managed profiles in the shape the UI uses to flag known networks."""
    return [
        {
            "ssid": ssid_from_tag(p.comment),
            "name": p.name,
            "mode": p.mode,
            "authentication-types": p.authentication_types,
        }
        for p in profiles
        if p.is_managed
    ]


class SecurityProfileReconciler:
    """Create, update or replace the profile for one SSID."""

    def __init__(self, client: RouterClient) -> None:
        self.client = client

    def list_profiles(self) -> list[SecurityProfile]:
        """All profiles on the router; ApiError/ParseError propagate."""
        return SecurityProfile.parse_rows(self.client.get_list(PROFILES_PATH))

    def list_profiles_lenient(self) -> list[SecurityProfile]:
        """Like list_profiles, but failures read as "no profiles"."""
        try:
            return self.list_profiles()
        except (ApiError, ParseError) as exc:
            logger.error("Reading security profiles failed, assuming none: %s", exc)
            return []

    @staticmethod
    def _find(profiles: list[SecurityProfile], name: str, tag: str) -> SecurityProfile | None:
        # Tagged profiles first: by name, then by tag. An untagged profile
        # with the working name is the last resort and gets tagged on update.
        tagged = [p for p in profiles if p.comment == tag]
        for profile in tagged:
            if profile.name == name:
                return profile
        if tagged:
            return tagged[0]
        for profile in profiles:
            if profile.name == name:
                return profile
        return None

    def _delete(self, name: str) -> str:
        return self.client.call("DELETE", f"{PROFILES_PATH}/{path_segment(name)}")

    @staticmethod
    def build_payload(ssid: str, password: str, requires_password: bool) -> dict[str, str]:
        payload = {"comment": provenance_tag(ssid)}
        if requires_password:
            payload["mode"] = SecurityMode.DYNAMIC_KEYS.value
            payload["authentication-types"] = PSK_AUTH_TYPES
            if password:
                payload["wpa-pre-shared-key"] = password
                payload["wpa2-pre-shared-key"] = password
            else:
                logger.error("Secured profile for '%s' requested without a password", ssid)
        else:
            payload["mode"] = SecurityMode.NONE.value
            payload["authentication-types"] = ""
            payload["wpa-pre-shared-key"] = ""
            payload["wpa2-pre-shared-key"] = ""
        return payload

    def reconcile(
        self,
        ssid: str,
        password: str,
        requires_password: bool,
        profile_name: str | None = None,
    ) -> str:
        """
        Converge the profile for ``ssid`` and return the profile name to use.

        Args:
            ssid: Network name, also stored in the provenance tag
            password: Pre-shared key, ignored for open networks
            requires_password: Secured (dynamic-keys) or open (none)
            profile_name: Explicit profile name, else derived from the SSID

        Raises:
            RequestValidationError: a new secured profile without a password
        """
        working_name = profile_name or default_profile_name(ssid)
        tag = provenance_tag(ssid)
        desired_mode = SecurityMode.DYNAMIC_KEYS if requires_password else SecurityMode.NONE

        target = self._find(self.list_profiles_lenient(), working_name, tag)

        if target is not None and target.mode != desired_mode.value:
            logger.info(
                "Profile %s mode %s -> %s, recreating",
                target.name, target.mode or "?", desired_mode.value,
            )
            try:
                error = router_error(self._delete(target.name))
                if error:
                    logger.warning("Deleting profile %s refused: %s", target.name, error)
            except ApiError as exc:
                logger.warning("Deleting profile %s failed: %s", target.name, exc)
            target = None

        payload = self.build_payload(ssid, password, requires_password)

        if target is not None:
            logger.info("Updating profile %s for '%s'", target.name, ssid)
            try:
                error = router_error(
                    self.client.call("PATCH", f"{PROFILES_PATH}/{path_segment(target.name)}", payload)
                )
                if error:
                    logger.warning("Updating profile %s refused: %s", target.name, error)
            except ApiError as exc:
                logger.warning("Updating profile %s failed: %s", target.name, exc)
            return target.name

        if requires_password and not password:
            raise RequestValidationError(
                "A password is required for a secured network",
                code="password_required",
            )

        payload["name"] = working_name
        logger.info("Creating profile %s for '%s' (%s)", working_name, ssid, desired_mode.value)
        try:
            error = router_error(self.client.call("POST", f"{PROFILES_PATH}/add", payload))
            if error:
                logger.warning("Creating profile %s refused: %s", working_name, error)
        except ApiError as exc:
            logger.warning("Creating profile %s failed: %s", working_name, exc)
        return working_name

    def delete_managed(self, ssid: str = "", profile_name: str = "") -> str:
        """
        Delete a profile this system owns.

        Untagged profiles are never touched. Returns the deleted name.
        """
        if not ssid and not profile_name:
            raise RequestValidationError("Missing profileName or ssid", code="missing_profile_identifier")

        try:
            profiles = self.list_profiles()
        except (ApiError, ParseError) as exc:
            raise ParseError("Failed to read profiles", code="profiles_unavailable", http_status=500) from exc

        tag = provenance_tag(ssid)
        target = None
        for profile in profiles:
            tagged = profile.comment == tag
            # Without an SSID any provenance tag will do for a named profile
            if profile_name and profile.name == profile_name and (tagged or (not ssid and profile.is_managed)):
                target = profile
                break
            if ssid and tagged:
                target = profile
                break

        if target is None:
            raise NotFoundError("Managed profile not found", code="profile_not_found")

        logger.info("Deleting managed profile %s", target.name)
        try:
            text = self._delete(target.name)
        except ApiError as exc:
            raise ApiError(
                f"Failed to delete profile {target.name}", reason="profile_delete_failed", http_status=500
            ) from exc
        error = router_error(text)
        if error:
            logger.error("Failed to delete profile %s: %s", target.name, error)
            raise ApiError(
                f"Failed to delete profile {target.name}: {error}", reason="profile_delete_failed", http_status=500
            )
        return target.name
