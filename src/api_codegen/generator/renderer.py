"""Per-target surface syntax: identifier casing, escaping, literals and comments.

The engine decides what a client contains; a renderer only decides how each
name and value is spelled in the target language.
"""

import json
import keyword
import re

from api_codegen.naming import to_camel, to_pascal, to_snake

_WHITESPACE_RE = re.compile(r"\s+")


class Renderer:
    """Base renderer. Subclasses set ``target`` and their reserved words."""

    target: str = ""
    method_case = staticmethod(to_camel)
    param_case = staticmethod(to_camel)
    reserved: frozenset[str] = frozenset()
    # Client members a generated method must not shadow.
    member_names: frozenset[str] = frozenset()
    null = "null"
    # Languages with default arguments let examples omit optional trailing args.
    optional_trailing_args = False
    case_insensitive_methods = False

    def method_name(self, operation_id: str) -> str:
        name = self.method_case(operation_id)
        blocked = {self.method_key(n) for n in self.reserved | self.member_names}
        if self.method_key(name) in blocked:
            name += "_"
        return name

    def param_name(self, raw: str) -> str:
        ident = self.param_case(raw) or "param"
        if ident[0].isdigit():
            ident = "p" + ident
        if ident in self.reserved:
            ident += "_"
        return ident

    def method_key(self, name: str) -> str:
        return name.lower() if self.case_insensitive_methods else name

    def literal(self, value) -> str:
        return json.dumps(str(value), ensure_ascii=False)

    def comment(self, text) -> str:
        """Collapse text onto one line that is safe inside a block comment."""
        return _WHITESPACE_RE.sub(" ", str(text or "")).strip().replace("*/", "* /")

    def example_arg(self, param) -> str:
        if param.location == "path":
            return self.literal(param.example)
        return self.null

    def example_args(self, method) -> list[str]:
        params = method.path_params if self.optional_trailing_args else method.params
        return [self.example_arg(p) for p in params]


class NodeRenderer(Renderer):
    target = "node"
    reserved = frozenset(
        """
        arguments await break case catch class const continue debugger default delete do
        else enum eval export extends false finally for function if implements import in
        instanceof interface let new null package private protected public return static
        super switch this throw true try typeof undefined var void while with yield
        requestPath requestUrl queryParams requestBody headers
        """.split()
    )
    member_names = frozenset({"constructor", "testConnection", "config", "authHandler", "requestHandler"})
    null = "undefined"
    optional_trailing_args = True


class PythonRenderer(Renderer):
    target = "python"
    method_case = staticmethod(to_snake)
    param_case = staticmethod(to_snake)
    reserved = frozenset(keyword.kwlist) | {
        "self",
        "request_path",
        "request_url",
        "query_params",
        "request_body",
        "headers",
    }
    member_names = frozenset({"test_connection", "config", "auth_handler", "request_handler", "session"})
    null = "None"
    optional_trailing_args = True

    def comment(self, text) -> str:
        # Rendered inside docstrings.
        return super().comment(text).replace("\\", "\\\\").replace('"', "'")


class GoRenderer(Renderer):
    target = "go"
    method_case = staticmethod(to_pascal)
    reserved = frozenset(
        """
        break case chan const continue default defer else fallthrough for func go goto if
        import interface map package range return select struct switch type var
        any bool byte error false float64 int int64 iota len make new nil rune string true
        c err headers requestPath requestURL queryParams requestBody
        buildQueryString encodeBody replacePathParam
        """.split()
    )
    member_names = frozenset({"TestConnection"})

    def example_arg(self, param) -> str:
        if param.location == "body":
            return "nil"
        if param.location == "query":
            return '""'
        return super().example_arg(param)


class JavaRenderer(Renderer):
    target = "java"
    reserved = frozenset(
        """
        abstract assert boolean break byte case catch char class const continue default do
        double else enum extends false final finally float for goto if implements import
        instanceof int interface long native new null package private protected public
        return short static strictfp super switch synchronized this throw throws transient
        true try var void volatile while record yield
        config authHandler requestHandler requestPath requestUrl queryParams requestBody headers
        """.split()
    )
    member_names = frozenset(
        {"testConnection", "getClass", "hashCode", "equals", "toString", "notify", "notifyAll", "wait", "clone", "finalize"}
    )


class PhpRenderer(Renderer):
    target = "php"
    # Variables carry a ``$`` sigil, so only ``$this`` and template locals clash.
    reserved = frozenset({"this", "requestPath", "requestUrl", "queryParams", "requestBody", "headers"})
    member_names = frozenset({"__construct", "testConnection"})
    optional_trailing_args = True
    case_insensitive_methods = True

    def literal(self, value) -> str:
        return "'" + str(value).replace("\\", "\\\\").replace("'", "\\'") + "'"

    def comment(self, text) -> str:
        # ``?>`` closes a PHP block even inside a line comment.
        return super().comment(text).replace("?>", "? >")


RENDERERS: dict[str, type[Renderer]] = {
    r.target: r for r in (NodeRenderer, PythonRenderer, GoRenderer, JavaRenderer, PhpRenderer)
}
