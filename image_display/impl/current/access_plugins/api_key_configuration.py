from __future__ import annotations

import logging

from image_display.framework.access import (
    AccessResult,
    AccessServices,
    register_access_check,
    require_account,
)
from image_display.framework.entities import Account

logger = logging.getLogger(__name__)

SETTINGS_NAME = "mailchimp.settings"
API_KEY = "api_key"


@register_access_check
class ApiKeyConfigurationAccessCheck:
    """Gates the mailing-list settings pages on a configured API key."""

    requirement = "_mailchimp_configuration_access_check"
    argument = None

    def __init__(self, services: AccessServices):
        self.config = services.config

    def access(self, account: Account) -> AccessResult:
        """
        Allowed when ``mailchimp.settings:api_key`` is a non-empty string,
        forbidden otherwise. Nothing about the account is consulted.
        """

        require_account(account)
        api_key = self.config.get(SETTINGS_NAME).get(API_KEY)
        if api_key is not None and not isinstance(api_key, str):
            # e.g. an unquoted numeric key in YAML
            logger.warning(
                "Access denied: %s:%s must be a string, got %s; quote it in the site config",
                SETTINGS_NAME,
                API_KEY,
                type(api_key).__name__,
            )
        has_key = isinstance(api_key, str) and len(api_key) > 0
        if not has_key:
            logger.debug("Access denied: %s:%s is not configured", SETTINGS_NAME, API_KEY)
        return AccessResult.allowed_if(has_key, reason="The API key has not been configured.")
