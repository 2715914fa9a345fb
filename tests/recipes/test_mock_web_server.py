"""
Tests for the MockWebServer @Rule migration recipe.
"""

import pytest

import rule_switcheroo as rs
from rule_switcheroo.config import RuntimeConfig
from rule_switcheroo.core.engine import RewriteEngine
from rule_switcheroo.core.templates import Template
from rule_switcheroo.core.tracer import TraceEventType
from rule_switcheroo.dependencies import UpgradeDependencyVersion
from rule_switcheroo.recipes import get_recipe
from rule_switcheroo.recipes.mock_web_server import (
  MockWebServerOptions,
  MockWebServerRewriter,
  UpdateMockWebServer,
)


def test_adds_lifecycle_method(source):
  code = source(
    """
    from typing import Annotated

    from junit import Rule
    from okhttp3.mockwebserver import MockWebServer


    class ServerTest:
        server: Annotated[MockWebServer, Rule] = MockWebServer()

        def test_get(self):
            self.server.enqueue("hello")
    """
  )
  expected = source(
    """
    from okhttp3.mockwebserver import MockWebServer
    from junit.jupiter.api import AfterEach, throws
    from okio import IOException


    class ServerTest:
        server: MockWebServer = MockWebServer()

        def test_get(self):
            self.server.enqueue("hello")

        @AfterEach
        @throws(IOException)
        def after_each_test(self):
            self.server.close()
    """
  )
  assert rs.migrate(code) == expected


def test_extends_existing_lifecycle_method(source):
  code = source(
    """
    from typing import Annotated

    from junit import Rule
    from junit.jupiter.api import AfterEach
    from okhttp3.mockwebserver import MockWebServer


    class ServerTest:
        server: Annotated[MockWebServer, Rule] = MockWebServer()

        @AfterEach
        def tear_down(self):
            pass
    """
  )
  expected = source(
    """
    from junit.jupiter.api import AfterEach, throws
    from okhttp3.mockwebserver import MockWebServer
    from okio import IOException


    class ServerTest:
        server: MockWebServer = MockWebServer()

        @AfterEach
        @throws(IOException)
        def tear_down(self):
            self.server.close()
    """
  )
  assert rs.migrate(code) == expected


def test_unrelated_code_is_returned_as_is(source):
  code = source(
    """
    from okhttp3.mockwebserver import MockWebServer


    class ServerTest:
        server: MockWebServer = MockWebServer()
    """
  )
  engine = RewriteEngine()
  tree = engine.parse(code)
  assert engine.rewrite_tree(tree) is tree
  assert rs.migrate(code) == code


def test_gate_passes_but_nothing_matches(source):
  code = source(
    """
    from typing import Annotated

    from junit import Rule
    from okhttp3.mockwebserver import MockWebServer


    class ServerTest:
        server: MockWebServer = MockWebServer()
        folder: Annotated[str, Rule] = "tmp"
    """
  )
  engine = RewriteEngine()
  tree = engine.parse(code)
  assert engine.rewrite_tree(tree) is tree


def test_module_level_field_is_ignored(source):
  code = source(
    """
    from typing import Annotated

    from junit import Rule
    from okhttp3.mockwebserver import MockWebServer

    server: Annotated[MockWebServer, Rule] = MockWebServer()
    """
  )
  assert rs.migrate(code) == code


def test_migration_is_idempotent(source):
  code = source(
    """
    from typing import Annotated

    from junit import Rule
    from okhttp3.mockwebserver import MockWebServer


    class ServerTest:
        server: Annotated[MockWebServer, Rule] = MockWebServer()
    """
  )
  once = rs.migrate(code)
  assert once != code
  assert rs.migrate(once) == once


def test_existing_lifecycle_method_migration_is_idempotent(source):
  code = source(
    """
    from typing import Annotated

    from junit import Rule
    from junit.jupiter.api import AfterEach
    from okhttp3.mockwebserver import MockWebServer


    class ServerTest:
        server: Annotated[MockWebServer, Rule] = MockWebServer()

        @AfterEach
        def tear_down(self):
            self.server.shutdown()
    """
  )
  once = rs.migrate(code)
  assert "@throws(IOException)" in once
  assert rs.migrate(once) == once
  assert once.count("@throws(IOException)") == 1
  assert once.count("self.server.close()") == 1


def test_conflicting_io_exception_import_is_reported(source):
  code = source(
    """
    from typing import Annotated

    from java.io import IOException
    from junit import Rule
    from junit.jupiter.api import AfterEach, throws
    from okhttp3.mockwebserver import MockWebServer


    class ServerTest:
        server: Annotated[MockWebServer, Rule] = MockWebServer()

        @AfterEach
        @throws(IOException)
        def tear_down(self):
            pass
    """
  )
  result = RewriteEngine().run(code, unit="test_server.py")

  assert result.success
  assert result.code == code
  [error] = result.errors
  assert "'IOException' is already bound to java.io.IOException" in error
  assert "ClassDef 'ServerTest'" in error


def test_conflicting_after_each_import_is_reported(source):
  code = source(
    """
    from typing import Annotated

    from junit import Rule
    from mylib import AfterEach
    from okhttp3.mockwebserver import MockWebServer


    class ServerTest:
        server: Annotated[MockWebServer, Rule] = MockWebServer()
    """
  )
  result = RewriteEngine().run(code, unit="test_server.py")

  assert result.success
  assert result.code == code
  assert "from junit.jupiter.api" not in result.code
  [error] = result.errors
  assert "'AfterEach' is already bound to mylib.AfterEach" in error


def test_instance_attribute_in_method(source):
  code = source(
    """
    from typing import Annotated

    from junit import Rule
    from okhttp3.mockwebserver import MockWebServer


    class ServerTest:
        def setup(self):
            self.server: Annotated[MockWebServer, Rule] = MockWebServer()
    """
  )
  expected = source(
    """
    from okhttp3.mockwebserver import MockWebServer
    from junit.jupiter.api import AfterEach, throws
    from okio import IOException


    class ServerTest:
        def setup(self):
            self.server: MockWebServer = MockWebServer()

        @AfterEach
        @throws(IOException)
        def after_each_test(self):
            self.server.close()
    """
  )
  assert rs.migrate(code) == expected


def test_aliases_are_resolved(source):
  code = source(
    """
    import typing

    import okhttp3.mockwebserver as mws
    from junit import Rule as JRule


    class ServerTest:
        server: typing.Annotated[mws.MockWebServer, JRule] = mws.MockWebServer()
    """
  )
  result = rs.migrate(code)
  assert "server: mws.MockWebServer = mws.MockWebServer()" in result
  assert "JRule" not in result
  assert "self.server.close()" in result


def test_extra_metadata_is_kept(source):
  code = source(
    """
    from typing import Annotated

    from junit import Rule
    from okhttp3.mockwebserver import MockWebServer


    class ServerTest:
        server: Annotated[MockWebServer, Rule, "shared"] = MockWebServer()
    """
  )
  result = rs.migrate(code)
  assert 'server: Annotated[MockWebServer, "shared"] = MockWebServer()' in result
  assert "from typing import Annotated\n" in result
  assert "from junit import Rule" not in result


def test_existing_throws_clause_is_extended(source):
  code = source(
    """
    from typing import Annotated

    from junit import Rule
    from junit.jupiter.api import AfterEach, throws
    from okhttp3.mockwebserver import MockWebServer


    class ServerTest:
        server: Annotated[MockWebServer, Rule] = MockWebServer()

        @AfterEach
        @throws(TimeoutError)
        def tear_down(self):
            self.client.stop()
    """
  )
  result = rs.migrate(code)
  assert "    @throws(TimeoutError, IOException)\n    def tear_down(self):\n" in result
  assert "        self.client.stop()\n        self.server.close()\n" in result
  assert "from junit.jupiter.api import AfterEach, throws\n" in result
  assert "from okio import IOException\n" in result


def test_declared_io_exception_is_not_repeated(source):
  code = source(
    """
    from typing import Annotated

    from junit import Rule
    from junit.jupiter.api import AfterEach, throws
    from okhttp3.mockwebserver import MockWebServer
    from okio import IOException


    class ServerTest:
        server: Annotated[MockWebServer, Rule] = MockWebServer()

        @AfterEach
        @throws(IOException)
        def tear_down(self):
            pass
    """
  )
  result = rs.migrate(code)
  assert result.count("IOException") == 2
  assert "        self.server.close()\n" in result


def test_last_tracked_field_wins(source):
  code = source(
    """
    from typing import Annotated

    from junit import Rule
    from okhttp3.mockwebserver import MockWebServer


    class ServerTest:
        first: Annotated[MockWebServer, Rule] = MockWebServer()
        second: Annotated[MockWebServer, Rule] = MockWebServer()
    """
  )
  result = rs.migrate(code)
  assert "first: MockWebServer = MockWebServer()" in result
  assert "self.second.close()" in result
  assert "self.first.close()" not in result


def test_each_class_is_handled_separately(source):
  code = source(
    """
    from typing import Annotated

    from junit import Rule
    from okhttp3.mockwebserver import MockWebServer


    class FirstTest:
        server: Annotated[MockWebServer, Rule] = MockWebServer()


    class SecondTest:
        backend: Annotated[MockWebServer, Rule] = MockWebServer()
    """
  )
  result = rs.migrate(code)
  assert result.count("def after_each_test(self):") == 2
  assert "self.server.close()" in result
  assert "self.backend.close()" in result
  assert result.count("from okio import IOException") == 1


def test_abstract_lifecycle_method_is_skipped(source):
  code = source(
    """
    from abc import abstractmethod
    from typing import Annotated

    from junit import Rule
    from junit.jupiter.api import AfterEach
    from okhttp3.mockwebserver import MockWebServer


    class BaseServerTest:
        server: Annotated[MockWebServer, Rule] = MockWebServer()

        @AfterEach
        @abstractmethod
        def tear_down(self): ...
    """
  )
  result = RewriteEngine().run(code)
  assert ".close()" not in result.code
  assert "    def tear_down(self): ...\n" in result.code
  inspections = [e for e in result.trace_events if e["type"] == TraceEventType.INSPECTION]
  assert any(e["metadata"]["outcome"] == "skipped" for e in inspections)


def test_method_name_is_made_unique(source):
  code = source(
    """
    from typing import Annotated

    from junit import Rule
    from okhttp3.mockwebserver import MockWebServer


    class ServerTest:
        server: Annotated[MockWebServer, Rule] = MockWebServer()

        def after_each_test(self):
            pass
    """
  )
  result = rs.migrate(code)
  assert "def after_each_test_1(self):\n        self.server.close()\n" in result


def test_method_name_option(source):
  code = source(
    """
    from typing import Annotated

    from junit import Rule
    from okhttp3.mockwebserver import MockWebServer


    class ServerTest:
        server: Annotated[MockWebServer, Rule] = MockWebServer()
    """
  )
  result = rs.migrate(code, recipe_options={"lifecycle_method_name": "stop_server"})
  assert "def stop_server(self):" in result


def test_invalid_method_name_option():
  with pytest.raises(ValueError):
    MockWebServerOptions(lifecycle_method_name="not a name")


def test_synthesis_error_leaves_class_unchanged(source):
  code = source(
    """
    from typing import Annotated

    from junit import Rule
    from junit.jupiter.api import AfterEach
    from okhttp3.mockwebserver import MockWebServer


    class ServerTest:
        server: Annotated[MockWebServer, Rule] = MockWebServer()

        @AfterEach
        def tear_down(self):
            pass
    """
  )

  class MistypedRewriter(MockWebServerRewriter):
    close_statement_template = Template.build("{server:okhttp3.Other}.close()", imports=("okhttp3.Other",))

  class MistypedRecipe(UpdateMockWebServer):
    def get_visitor(self, context, tracer=None, unit=None):
      return MistypedRewriter(context, tracer, unit, self.options)

  result = RewriteEngine(recipe=MistypedRecipe()).run(code, unit="test_server.py")
  assert result.success
  assert not result.changed
  assert result.code == code
  [error] = result.errors
  assert error.startswith("test_server.py: synthesis_error:")
  assert "ClassDef 'ServerTest'" in error


def test_recipe_metadata():
  recipe = get_recipe("update_mock_web_server")
  assert isinstance(recipe, UpdateMockWebServer)
  assert recipe.display_name == "okhttp3 3.x MockWebserver @Rule To 4.x MockWebServer"
  assert str(recipe.preconditions()) == "uses(junit.Rule) and uses(okhttp3.mockwebserver.MockWebServer)"
  [action] = recipe.recipe_list()
  assert isinstance(action, UpgradeDependencyVersion)
  assert action.package == "mockwebserver"
  assert action.version == "4.X"


def test_engine_passes_options_from_config():
  engine = RewriteEngine(config=RuntimeConfig(recipe_options={"lifecycle_method_name": "done"}))
  assert engine.recipe.options.lifecycle_method_name == "done"
