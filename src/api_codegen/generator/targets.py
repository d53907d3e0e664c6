"""Target emitters: a fixed ``{artifact path: template}`` map per language."""

import json
import re
from pathlib import Path

from jinja2 import Environment, FileSystemLoader, StrictUndefined

from .defaults import CLIENT_DEFAULTS, ENV_VARS
from .renderer import GoRenderer, JavaRenderer, NodeRenderer, PhpRenderer, PythonRenderer, Renderer

TEMPLATES_DIR = Path(__file__).parent / "templates"


def _json_string(value) -> str:
    return json.dumps(str(value), ensure_ascii=False)


def _one_line(value) -> str:
    return re.sub(r"\s+", " ", str(value or "")).strip()


def _make_env() -> Environment:
    env = Environment(
        loader=FileSystemLoader(str(TEMPLATES_DIR)),
        autoescape=False,
        keep_trailing_newline=True,
        trim_blocks=True,
        lstrip_blocks=True,
        undefined=StrictUndefined,
    )
    env.filters["json_string"] = _json_string
    env.filters["one_line"] = _one_line
    return env


# Read-only after import; templates are cached by the loader.
ENV = _make_env()


class TargetEmitter:
    """Renders one target's artifacts from a ClientSpec."""

    target: str = ""
    renderer_class: type[Renderer] = Renderer
    files: dict[str, str] = {}

    def __init__(self):
        self.renderer = self.renderer_class()

    def emit(self, spec) -> dict[str, str]:
        context = {
            "spec": spec,
            "r": self.renderer,
            "defaults": CLIENT_DEFAULTS,
            "env": ENV_VARS,
            "target": self.target,
        }
        return {path: ENV.get_template(template).render(context) for path, template in self.files.items()}


class NodeEmitter(TargetEmitter):
    target = "node"
    renderer_class = NodeRenderer
    files = {
        "package.json": "node/package.json.j2",
        "src/ApiClient.js": "node/ApiClient.js.j2",
        "src/auth/AuthHandler.js": "node/AuthHandler.js.j2",
        "src/utils/RequestHandler.js": "node/RequestHandler.js.j2",
        "src/utils/ApiError.js": "node/ApiError.js.j2",
        "src/config/Config.js": "node/Config.js.j2",
        "tests/ApiClient.test.js": "node/ApiClient.test.js.j2",
        "examples/basic-usage.js": "node/basic-usage.js.j2",
        ".env.example": "_shared/env.example.j2",
    }


class PythonEmitter(TargetEmitter):
    target = "python"
    renderer_class = PythonRenderer
    files = {
        "pyproject.toml": "python/pyproject.toml.j2",
        "src/api_client/__init__.py": "python/__init__.py.j2",
        "src/api_client/client.py": "python/client.py.j2",
        "src/api_client/auth.py": "python/auth.py.j2",
        "src/api_client/request.py": "python/request.py.j2",
        "src/api_client/errors.py": "python/errors.py.j2",
        "src/api_client/config.py": "python/config.py.j2",
        "tests/test_client.py": "python/test_client.py.j2",
        "examples/basic_usage.py": "python/basic_usage.py.j2",
        ".env.example": "_shared/env.example.j2",
    }


class GoEmitter(TargetEmitter):
    target = "go"
    renderer_class = GoRenderer
    files = {
        "go.mod": "go/go.mod.j2",
        "client.go": "go/client.go.j2",
        "models.go": "go/models.go.j2",
        "auth.go": "go/auth.go.j2",
        "request.go": "go/request.go.j2",
        "errors.go": "go/errors.go.j2",
        "config.go": "go/config.go.j2",
        "client_test.go": "go/client_test.go.j2",
        "example/main.go": "go/main.go.j2",
        ".env.example": "_shared/env.example.j2",
    }


JAVA_SRC = "src/main/java/com/example"


class JavaEmitter(TargetEmitter):
    target = "java"
    renderer_class = JavaRenderer
    files = {
        "pom.xml": "java/pom.xml.j2",
        f"{JAVA_SRC}/ApiClient.java": "java/ApiClient.java.j2",
        f"{JAVA_SRC}/models/ApiResponse.java": "java/ApiResponse.java.j2",
        f"{JAVA_SRC}/auth/AuthHandler.java": "java/AuthHandler.java.j2",
        f"{JAVA_SRC}/utils/RequestHandler.java": "java/RequestHandler.java.j2",
        f"{JAVA_SRC}/utils/ApiException.java": "java/ApiException.java.j2",
        f"{JAVA_SRC}/config/Config.java": "java/Config.java.j2",
        "src/test/java/com/example/ApiClientTest.java": "java/ApiClientTest.java.j2",
        f"{JAVA_SRC}/ExampleUsage.java": "java/ExampleUsage.java.j2",
        ".env.example": "_shared/env.example.j2",
    }


class PhpEmitter(TargetEmitter):
    target = "php"
    renderer_class = PhpRenderer
    files = {
        "composer.json": "php/composer.json.j2",
        "src/ApiClient.php": "php/ApiClient.php.j2",
        "src/Models/ApiResponse.php": "php/ApiResponse.php.j2",
        "src/Auth/AuthHandler.php": "php/AuthHandler.php.j2",
        "src/Utils/RequestHandler.php": "php/RequestHandler.php.j2",
        "src/Utils/ApiException.php": "php/ApiException.php.j2",
        "src/Config/Config.php": "php/Config.php.j2",
        "tests/ApiClientTest.php": "php/ApiClientTest.php.j2",
        "examples/basic-usage.php": "php/basic-usage.php.j2",
        ".env.example": "_shared/env.example.j2",
    }


TARGETS: dict[str, type[TargetEmitter]] = {
    e.target: e for e in (NodeEmitter, PythonEmitter, GoEmitter, JavaEmitter, PhpEmitter)
}
