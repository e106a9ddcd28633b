# TradeConnect
# Copyright (C) 2025 TradeConnect Team
#
# This file is part of TradeConnect and is dual-licensed:
#
# 1. Under the terms of the GNU Affero General Public License (AGPL) version 3,
#    as published by the Free Software Foundation. You may use, modify, and
#    distribute this file under those terms.
#
# 2. Under a commercial license, allowing use in closed-source or proprietary
#    environments without the obligations of the AGPL.
#
# If you have obtained this file under the AGPL, and you make it available over
# a network, you must also make the complete source code available under the same license.
#
# For more information or to purchase a commercial license, contact
# the TradeConnect Team.
#
# SPDX-License-Identifier: AGPL-3.0-or-later OR Proprietary

from typing import Any

from django.apps import apps
from django.conf import settings as conf_settings
from django.core.cache import cache


def cache_configs_key(config_owner_id: int, config_model_name: str) -> str:
    """Generate cache key for configuration objects."""
    return f"configs_{config_model_name}_{config_owner_id}"


def clear_config_cache(config_element: Any) -> None:
    """Clear the cached configs of the element owning a config row."""
    owner = config_element.organization if hasattr(config_element, "organization_id") else config_element.event
    # noinspection PyProtectedMember
    cache.delete(cache_configs_key(owner.id, owner._meta.model_name.lower()))


def get_configs(model_instance: Any) -> dict:
    """Get configuration dictionary for a Django model instance."""
    # noinspection PyProtectedMember
    return get_element_configs(model_instance.id, model_instance._meta.model_name.lower())


def get_element_configs(element_id: int, model_name: str) -> dict:
    """Get element configurations from cache or database.

    Args:
        element_id: The ID of the element to get configs for
        model_name: The name of the model to retrieve configs from

    Returns:
        Dictionary containing the element configurations
    """
    cache_key = cache_configs_key(element_id, model_name)

    cached_configs = cache.get(cache_key)
    if cached_configs is None:
        cached_configs = update_configs(element_id, model_name)
        cache.set(cache_key, cached_configs, timeout=conf_settings.CACHE_TIMEOUT_1_DAY)
    return cached_configs


def update_configs(element_id: int, model_name: str) -> dict[str, str]:
    """Retrieve configuration values for a given element.

    Args:
        element_id: The ID of the element to retrieve configurations for
        model_name: The type of model ("organization" or "event")

    Returns:
        A dictionary mapping configuration names to their values, or empty dict if model_name is invalid
    """
    model_map = {
        "event": ("EventConfig", "event_id"),
        "organization": ("OrganizationConfig", "organization_id"),
    }

    if model_name not in model_map:
        return {}

    config_model_name, foreign_key_field = model_map[model_name]
    config_model_class = apps.get_model("tradeconnect", config_model_name)
    config_queryset = config_model_class.objects.filter(**{foreign_key_field: element_id})

    return {config.name: config.value for config in config_queryset}


def save_single_config(obj: Any, name: str, value: Any) -> None:
    """Create or update a configuration value of an organization or event."""
    fk_field = obj._meta.model_name.lower()
    obj.configs.model.objects.update_or_create(defaults={"value": str(value)}, **{fk_field: obj, "name": name})


def get_element_config(element: Any, config_name: str, default_value: Any, *, bypass_cache: bool = False) -> Any:
    """Get configuration value with type conversion and default fallback.

    Args:
        element: Organization or Event instance
        config_name: Configuration parameter name to retrieve
        default_value: Default value, also used as type indicator for conversion
        bypass_cache: Whether to read directly from the database (background processes)

    Returns:
        Configuration value converted to the type of default_value, or default_value
    """
    if bypass_cache:
        # do not trust cache for background processes
        configs = update_configs(element.id, element._meta.model_name.lower())
    else:
        configs = get_configs(element)

    return evaluate_config(configs, config_name, default_value)


def get_organization_config(organization_id: int, config_name: str, default_value: Any = None) -> Any:
    return evaluate_config(get_element_configs(organization_id, "organization"), config_name, default_value)


def get_event_config(event_id: int, config_name: str, default_value: Any = None) -> Any:
    """Get event configuration value from cache or database."""
    return evaluate_config(get_element_configs(event_id, "event"), config_name, default_value)


def evaluate_config(configurations: dict, configuration_name: str, default_value: Any) -> Any:
    """Evaluate configuration value with type conversion.

    Args:
        configurations: dict with all the configs
        configuration_name: Configuration key to lookup
        default_value: Default value to return if key not found or value is empty

    Returns:
        Configuration value with appropriate type conversion, or default value
    """
    if configuration_name not in configurations:
        return default_value

    configuration_value = configurations[configuration_name]

    # Handle boolean type conversion for string "True"/"False"
    if isinstance(default_value, bool):
        return configuration_value == "True"

    if not configuration_value or configuration_value == "None":
        return default_value

    if isinstance(default_value, int):
        try:
            return int(configuration_value)
        except ValueError:
            return default_value

    return configuration_value
