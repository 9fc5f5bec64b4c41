"""
Store policy lookup tool.

Topics are matched by containment in either direction, so "退货" finds
"退货政策" and "退货政策详情" finds it too.
"""

import logging
from typing import Optional

from ..models import Policy, StoreSnapshot

logger = logging.getLogger(__name__)


def find_policy(topic: str, policies: tuple[Policy, ...]) -> Optional[Policy]:
    """Return the first policy whose topic contains, or is contained in, ``topic``."""
    needle = topic.lower()
    for policy in policies:
        known = policy.topic.lower()
        if needle in known or known in needle:
            return policy
    return None


def format_result_for_llm(policy: Optional[Policy], policies: tuple[Policy, ...]) -> str:
    if policy is None:
        topics = "、".join(p.topic for p in policies)
        return f"未找到该主题的政策详情。目前支持：{topics}。"
    return policy.content


def _handle_get_store_policy(params: dict, snapshot: StoreSnapshot) -> str:
    topic = str(params.get("topic") or "")
    policy = find_policy(topic, snapshot.policies)
    logger.debug("Policy lookup %r: %s", topic, policy.topic if policy else "missing")
    return format_result_for_llm(policy, snapshot.policies)


def _register():
    from .registry import ToolRegistry

    ToolRegistry.register(
        name="getStorePolicy",
        description="Retrieve store policies. Available topics: {policy_topics}.",
        parameters={"topic": "The policy topic ({policy_topics})."},
        handler=_handle_get_store_policy,
        display_name="正在检索服务政策",
    )


_register()
