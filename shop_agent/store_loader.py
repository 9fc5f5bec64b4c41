"""
Store data loader for Shop Agent.

Loads products, orders and policies from a YAML file with support for
environment variable interpolation. Falls back to the built-in demo data
when no file is configured.

Example file::

    products:
      - id: p1
        name: Ultra-Comfort 无线降噪耳机
        price: 199.99
        category: 电子产品
        description: 40小时续航的高品质降噪耳机。
        stock: 15
    orders:
      - id: ORD-1001
        customer_name: 张三
        items: [p1]
        status: Shipped
        estimated_delivery: "2023-11-20"
    policies:
      - topic: 退货政策
        content: 您可以在购买后30天内退还任何产品。
"""

import logging
import os
import re
from pathlib import Path
from typing import Any, Optional

import yaml

from .config import config
from .errors import StoreDataError
from .models import Order, OrderStatus, Policy, Product, StoreSnapshot, demo_snapshot

logger = logging.getLogger(__name__)

# Regex for environment variable interpolation: ${VAR} or ${VAR:-default}
ENV_VAR_PATTERN = re.compile(r"\$\{([^}:]+)(?::-([^}]*))?\}")


def resolve_env_vars(value: str) -> str:
    """
    Resolve environment variable references in a string.

    Supports ${VAR} and ${VAR:-default} syntax.
    """

    def replace_match(match: re.Match) -> str:
        var_name = match.group(1)
        default_value = match.group(2) if match.group(2) is not None else ""
        return os.environ.get(var_name, default_value)

    return ENV_VAR_PATTERN.sub(replace_match, value)


def _substitute_env_vars_recursive(data: Any) -> Any:
    """Recursively substitute environment variables in a data structure."""
    if isinstance(data, dict):
        return {k: _substitute_env_vars_recursive(v) for k, v in data.items()}
    elif isinstance(data, list):
        return [_substitute_env_vars_recursive(item) for item in data]
    elif isinstance(data, str):
        return resolve_env_vars(data)
    return data


def _first(data: dict, *keys: str, default: Any = None) -> Any:
    """Return the first present key; lets files use snake_case or camelCase."""
    for key in keys:
        if key in data:
            return data[key]
    return default


def parse_product(data: dict) -> Product:
    """Parse a product entry from dict."""
    return Product(
        id=str(data["id"]),
        name=str(data["name"]),
        price=float(data.get("price", 0)),
        category=str(data.get("category", "")),
        description=str(data.get("description", "")),
        stock=int(data.get("stock", 0)),
    )


def parse_order(data: dict) -> Order:
    """Parse an order entry from dict."""
    status_str = str(data.get("status", OrderStatus.PROCESSING.value))
    try:
        status = OrderStatus(status_str)
    except ValueError:
        raise ValueError(f"Unknown order status: {status_str}")

    estimated = _first(data, "estimated_delivery", "estimatedDelivery")
    return Order(
        id=str(data["id"]),
        customer_name=str(_first(data, "customer_name", "customerName", default="")),
        items=tuple(str(item) for item in data.get("items", [])),
        status=status,
        estimated_delivery=str(estimated) if estimated is not None else None,
    )


def parse_policy(data: dict) -> Policy:
    """Parse a policy entry from dict."""
    return Policy(topic=str(data["topic"]), content=str(data.get("content", "")))


def _parse_section(raw: dict, section: str, parser) -> list:
    items = []
    for index, entry in enumerate(raw.get(section) or []):
        try:
            items.append(parser(entry))
        except (KeyError, TypeError, ValueError) as e:
            logger.error("Failed to parse %s[%d]: %s", section, index, e)
            raise StoreDataError(f"Invalid {section} entry #{index}: {e}") from e
    return items


def load_store_snapshot(path: Optional[str] = None) -> StoreSnapshot:
    """
    Load the store snapshot from a YAML file.

    Args:
        path: Path to the YAML data file. If None, uses STORE_DATA_PATH.
            When neither is set the demo data is returned.

    Returns:
        StoreSnapshot with products, orders and policies.

    Raises:
        StoreDataError: If the file is missing or malformed.
    """
    path = path if path is not None else config.store.data_path
    if not path:
        logger.debug("No store data file configured, using demo data")
        return demo_snapshot()

    data_path = Path(path)
    if not data_path.exists():
        raise StoreDataError(f"Store data file not found: {data_path}")

    logger.debug("Loading store data from %s", data_path)
    try:
        with open(data_path, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise StoreDataError(f"Invalid YAML in {data_path}: {e}") from e

    if raw is None:
        return StoreSnapshot()
    if not isinstance(raw, dict):
        raise StoreDataError(f"Store data file {data_path} must contain a mapping")

    raw = _substitute_env_vars_recursive(raw)
    snapshot = StoreSnapshot.build(
        policies=_parse_section(raw, "policies", parse_policy),
        products=_parse_section(raw, "products", parse_product),
        orders=_parse_section(raw, "orders", parse_order),
    )
    logger.info(
        "Loaded store data: %d products, %d orders, %d policies",
        len(snapshot.products),
        len(snapshot.orders),
        len(snapshot.policies),
    )
    return snapshot
