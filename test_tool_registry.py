import unittest
from types import SimpleNamespace

from askbot.llm.errors import InvalidToolError, LLMToolError
from askbot.llm.tools.registry import FunctionTool, ToolRegistry, build_tool_registry
from askbot.llm.types import ToolSuccess


def schema(name, description="test tool"):
    return {"name": name, "description": description, "parameters": {"type": "object", "properties": {}, "required": []}}


def tool(name, description="test tool", value=None):
    return FunctionTool(name, schema(name, description), lambda: ToolSuccess({"value": value}))


class TestToolRegistry(unittest.TestCase):
    def test_register_and_get(self):
        registry = ToolRegistry()
        t = tool("alpha")
        registry.register(t)

        self.assertIs(registry.get("alpha"), t)
        self.assertIsNone(registry.get("Alpha"))
        self.assertIsNone(registry.get("alph"))
        self.assertEqual(registry.size(), 1)

    def test_schemas_keep_registration_order(self):
        registry = ToolRegistry()
        for name in ("zeta", "alpha", "mid"):
            registry.register(tool(name))

        self.assertEqual(registry.get_tool_names(), ["zeta", "alpha", "mid"])
        schemas = registry.get_tool_schemas()
        self.assertEqual([s["type"] for s in schemas], ["function"] * 3)
        self.assertEqual([s["function"]["name"] for s in schemas], ["zeta", "alpha", "mid"])

    def test_reregistering_replaces_previous_tool(self):
        registry = ToolRegistry()
        registry.register(tool("dup", value=1))
        registry.register(tool("other"))
        with self.assertLogs(level="WARNING"):
            registry.register(tool("dup", value=2))

        self.assertEqual(registry.size(), 2)
        self.assertEqual(registry.get("dup").execute({}).payload, {"value": 2})
        # position of the first registration is kept
        self.assertEqual(registry.get_tool_names(), ["dup", "other"])

    def test_descriptions(self):
        registry = ToolRegistry()
        registry.register(tool("alpha", "does alpha things"))
        self.assertEqual(
            registry.get_tool_descriptions(),
            [{"name": "alpha", "description": "does alpha things", "parameters": schema("alpha")["parameters"]}],
        )

    def test_invalid_tools_are_rejected(self):
        registry = ToolRegistry()
        bad = [
            SimpleNamespace(name="", schema=schema("x"), execute=lambda args: None),
            SimpleNamespace(name=None, schema=schema("x"), execute=lambda args: None),
            SimpleNamespace(name="x", schema=None, execute=lambda args: None),
            SimpleNamespace(name="x", schema={}, execute=lambda args: None),
            SimpleNamespace(name="x", schema=schema("x"), execute="not callable"),
            SimpleNamespace(name="x", schema=schema("x")),
        ]
        for candidate in bad:
            with self.subTest(candidate=candidate):
                with self.assertRaises(InvalidToolError):
                    registry.register(candidate)
        self.assertEqual(registry.size(), 0)

    def test_invalid_tool_error_is_a_tool_error(self):
        self.assertTrue(issubclass(InvalidToolError, LLMToolError))

    def test_duck_typed_tool_is_accepted(self):
        registry = ToolRegistry()
        registry.register(SimpleNamespace(name="duck", schema=schema("duck"), execute=lambda args: ToolSuccess()))
        self.assertEqual(registry.get_tool_names(), ["duck"])


class TestBuildToolRegistry(unittest.TestCase):
    def test_defaults(self):
        registry = build_tool_registry({})
        self.assertEqual(registry.get_tool_names(), ["calculate", "get_current_time"])

    def test_qbittorrent_enabled(self):
        registry = build_tool_registry({
            "qbittorrent": {"enabled": True, "host": "http://qbit.local:8080", "timeout": 5},
        })
        self.assertEqual(registry.get_tool_names(), ["calculate", "get_current_time", "qbittorrent"])
        self.assertEqual(registry.get("qbittorrent")._client.host, "http://qbit.local:8080")

    def test_qbittorrent_disabled(self):
        registry = build_tool_registry({"qbittorrent": {"enabled": False, "host": "http://qbit.local:8080"}})
        self.assertIsNone(registry.get("qbittorrent"))


if __name__ == "__main__":
    unittest.main()
