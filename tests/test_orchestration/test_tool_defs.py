"""Tests for tool declarations built from the registry."""

from unittest.mock import Mock

from shop_agent.models import Policy
from shop_agent.orchestration.tool_defs import build_function_schemas, build_tool_definitions
from shop_agent.providers.gemini_style import GeminiStyleAdapter
from shop_agent.providers.openai_style import OpenAIStyleAdapter


class TestBuildFunctionSchemas:
    """Tests for build_function_schemas."""

    def test_includes_store_tools(self, snapshot):
        names = [s["name"] for s in build_function_schemas(snapshot.policies)]

        assert sorted(names) == ["getOrderStatus", "getStorePolicy", "searchProducts"]

    def test_parameters_are_required_strings(self, snapshot):
        for schema in build_function_schemas(snapshot.policies):
            params = schema["parameters"]
            assert params["type"] == "object"
            assert params["required"] == list(params["properties"])
            for prop in params["properties"].values():
                assert prop["type"] == "string"

    def test_policy_topics_filled_from_live_policies(self):
        policies = [Policy("会员积分", "..."), Policy("发票", "...")]

        schema = next(
            s for s in build_function_schemas(policies) if s["name"] == "getStorePolicy"
        )

        assert schema["description"] == "Retrieve store policies. Available topics: 会员积分, 发票."
        assert "会员积分, 发票" in schema["parameters"]["properties"]["topic"]["description"]
        assert "{policy_topics}" not in str(schema)


class TestBuildToolDefinitions:
    """Tests for build_tool_definitions."""

    def test_openai_format(self, snapshot):
        for tool in build_tool_definitions(snapshot.policies):
            assert tool["type"] == "function"
            assert {"name", "description", "parameters"} <= set(tool["function"])


class TestDeclarationsAcrossProviders:
    """Both adapters declare the same tools with the same parameters."""

    def test_same_names_and_parameters(self, snapshot):
        openai_tools = OpenAIStyleAdapter(api_key="k", client=Mock()).declare_tools(
            snapshot.policies
        )
        gemini_tools = GeminiStyleAdapter(api_key="k", client=Mock()).declare_tools(
            snapshot.policies
        )

        openai_decls = {
            t["function"]["name"]: sorted(t["function"]["parameters"]["properties"])
            for t in openai_tools
        }
        gemini_decls = {
            d.name: sorted(d.parameters.properties)
            for d in gemini_tools[0].function_declarations
        }

        assert openai_decls == gemini_decls
        assert openai_decls["getOrderStatus"] == ["orderId"]

    def test_gemini_description_uses_live_topics(self):
        policies = [Policy("以旧换新", "...")]

        tools = GeminiStyleAdapter(api_key="k", client=Mock()).declare_tools(policies)
        decl = next(d for d in tools[0].function_declarations if d.name == "getStorePolicy")

        assert "以旧换新" in decl.description
