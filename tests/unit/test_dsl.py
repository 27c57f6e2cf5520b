"""Unit tests for the build script lexer and parser."""

import pytest

from gradlelens.core.exceptions import DescriptorParseError
from gradlelens.dsl import (
    Assignment,
    Block,
    Call,
    CallExpr,
    Import,
    Lambda,
    Literal,
    Operation,
    Reference,
    Template,
    TokenKind,
    parse_script,
    quote,
    tokenize,
)


class TestLexer:
    """Tests for tokenize()."""

    def test_comments_are_dropped(self):
        """Line and block comments produce no tokens."""
        tokens = tokenize('a = 1 // trailing\n/* block */ b = "x"')
        kinds = [t.kind for t in tokens]
        assert TokenKind.STRING in kinds
        assert all("trailing" not in t.text and "block" not in t.text for t in tokens)
        assert tokens[-1].kind == TokenKind.EOF

    def test_string_contents_are_unquoted(self):
        """String tokens carry their contents without quotes."""
        tokens = tokenize('versionName = "1.0.0"')
        assert tokens[2].kind == TokenKind.STRING
        assert tokens[2].text == "1.0.0"

    def test_escapes_are_decoded(self):
        """Backslash escapes resolve to the characters they stand for."""
        tokens = tokenize(r'a = "say \"hi\"\n\tC:\\dir \$HOME \u00e9"')
        assert tokens[2].kind == TokenKind.STRING
        assert tokens[2].text == 'say "hi"\n\tC:\\dir $HOME \u00e9'

    def test_unknown_escape(self):
        """Escapes Kotlin does not define are errors at the string's position."""
        with pytest.raises(DescriptorParseError, match="escape") as exc_info:
            tokenize(r'a = "\q"')
        assert exc_info.value.column == 5

    def test_template_parts(self):
        """Strings with placeholders become templates split into text and names."""
        tokens = tokenize('a = "v$major.${ minor }"')
        assert tokens[2].kind == TokenKind.TEMPLATE
        assert tokens[2].parts == ("v", "major", ".", "minor", "")

    def test_lone_dollar_is_text(self):
        """A dollar sign not followed by a name stays in the string."""
        assert tokenize('a = "$ 5"')[2].text == "$ 5"

    @pytest.mark.parametrize(
        "value",
        ['1.0 "beta"', "C:\\keys\\upload.jks", "${secret}", "$x", "line\nbreak", ""],
    )
    def test_quote_reads_back(self, value):
        """quote() output tokenizes back to the same string."""
        token = tokenize(quote(value))[0]
        assert token.kind == TokenKind.STRING
        assert token.text == value

    def test_positions_are_one_based(self):
        """Tokens record line and column."""
        tokens = tokenize("android {\n    compileSdk = 34\n}")
        compile_sdk = next(t for t in tokens if t.text == "compileSdk")
        assert (compile_sdk.line, compile_sdk.column) == (2, 5)

    def test_unexpected_character(self):
        """Characters outside the subset are reported with their position."""
        with pytest.raises(DescriptorParseError) as exc_info:
            tokenize("a = @", source="build.gradle.kts")
        error = exc_info.value
        assert (error.line, error.column) == (1, 5)
        assert str(error).startswith("build.gradle.kts:1:5:")

    def test_unterminated_string(self):
        """A string without closing quote is an error."""
        with pytest.raises(DescriptorParseError, match="Unterminated string"):
            tokenize('versionName = "1.0.0\n')


class TestParser:
    """Tests for parse_script()."""

    def test_nested_blocks_and_assignments(self):
        """Blocks nest and hold assignments."""
        script = parse_script("android {\n    defaultConfig {\n        minSdk = 21\n    }\n}\n")
        (android,) = script.statements
        (default_config,) = android.body
        assert isinstance(default_config, Block)
        assert default_config.body == (Assignment(target="minSdk", value=Literal(21, line=3), line=3),)

    def test_call_with_infix_pairs(self):
        """Plugin calls keep version and apply directives."""
        script = parse_script('plugins {\n    id("com.android.application") version "8.1.0" apply false\n}')
        (call,) = script.statements[0].body
        assert isinstance(call, Call)
        assert call.name == "id"
        assert call.args[0].value == "com.android.application"
        assert [(key, expr.value) for key, expr in call.infix] == [("version", "8.1.0"), ("apply", False)]

    def test_block_with_arguments_is_labelled(self):
        """create("release") { ... } is a block labelled release."""
        script = parse_script('signingConfigs {\n    create("release") {\n        storeFile = file("k.jks")\n    }\n}')
        (create,) = script.statements[0].body
        assert create.name == "create"
        assert create.label == "release"
        (store_file,) = create.body
        assert isinstance(store_file.value, CallExpr)
        assert store_file.value.callee == "file"

    def test_chained_call_value(self):
        """signingConfigs.getByName("release") keeps its receiver."""
        script = parse_script('signingConfig = signingConfigs.getByName("release")')
        value = script.statements[0].value
        assert isinstance(value, CallExpr)
        assert value.qualified_name == "signingConfigs.getByName"
        assert value.args == (Literal("release", line=1),)

    def test_dotted_reference_value(self):
        """Dotted names without a call are references."""
        script = parse_script("sourceCompatibility = JavaVersion.VERSION_17")
        assert script.statements[0].value == Reference("JavaVersion.VERSION_17", line=1)

    def test_index_and_cast(self):
        """props["key"] as String reads as a get() call; the cast is dropped."""
        script = parse_script('storePassword = keystoreProperties["storePassword"] as String')
        value = script.statements[0].value
        assert isinstance(value, CallExpr)
        assert value.callee == "get"
        assert value.receiver == Reference("keystoreProperties", line=1)

    def test_multiline_arguments(self):
        """Arguments may span lines and end with a trailing comma."""
        script = parse_script('proguardFiles(\n    getDefaultProguardFile("a.txt"),\n    "b.pro",\n)')
        (call,) = script.statements
        assert len(call.args) == 2
        assert call.args[0].callee == "getDefaultProguardFile"

    def test_semicolons_separate_statements(self):
        """Statements can share a line when separated by ';'."""
        script = parse_script("a = 1; b = 2")
        assert [s.target for s in script.statements] == ["a", "b"]

    def test_val_declaration(self):
        """Local declarations parse as assignments with the keyword as operator."""
        script = parse_script('val keystoreProperties = Properties()')
        statement = script.statements[0]
        assert statement.target == "keystoreProperties"
        assert statement.operator == "val"

    def test_imports(self):
        """Imports parse with wildcards and aliases."""
        script = parse_script("import java.util.Properties\nimport java.io.*\nimport a.B as C\n")
        assert script.statements == (
            Import("java.util.Properties", line=1),
            Import("java.io.*", line=2),
            Import("a.B", alias="C", line=3),
        )

    def test_if_else_block(self):
        """if/else parses as one block holding the statements of every branch."""
        script = parse_script(
            "if (file.exists()) {\n    a = 1\n} else if (b) {\n    c = 2\n}\nelse {\n    d = 3\n}\nx = 4"
        )
        block, after = script.statements
        assert isinstance(block, Block)
        assert block.name == "if"
        assert [s.target for s in block.body] == ["a", "c", "d"]
        assert after.target == "x"

    def test_safe_call_with_lambda(self):
        """props["f"]?.let { file(it) } is a let() call taking a lambda."""
        script = parse_script('storeFile = props["f"]?.let { file(it) }')
        value = script.statements[0].value
        assert isinstance(value, CallExpr)
        assert value.callee == "let"
        assert value.receiver.callee == "get"
        assert isinstance(value.args[0], Lambda)

    def test_lambda_parameters(self):
        """Named lambda parameters are kept; bodies with nested braces are skipped."""
        script = parse_script("x = items.map { a, b -> if (a) { b } }")
        (lambda_,) = script.statements[0].value.args
        assert lambda_.params == ("a", "b")

    def test_operators(self):
        """Binary and unary operators build operations; negative numbers stay literals."""
        script = parse_script('a = b ?: "x"\nc = !d\ne = -1\nf = g!! + 2')
        a, c, e, f = (s.value for s in script.statements)
        assert a == Operation("?:", (Reference("b", line=1), Literal("x", line=1)), line=1)
        assert c.operator == "!"
        assert e == Literal(-1, line=3)
        assert f.operator == "+"

    def test_typed_val(self):
        """Type annotations on declarations are skipped."""
        script = parse_script('val props: Map<String, String>? = null')
        assert script.statements[0] == Assignment("props", Literal(None, line=1), operator="val", line=1)

    def test_template_value(self):
        """String templates are template nodes."""
        script = parse_script('implementation("androidx.core:core-ktx:$coreVersion")')
        (arg,) = script.statements[0].args
        assert isinstance(arg, Template)
        assert arg.placeholders == ("coreVersion",)

    def test_unclosed_block(self):
        """A missing closing brace names the opening position."""
        with pytest.raises(DescriptorParseError, match="Unclosed block opened at line 1"):
            parse_script('android {\n    namespace = "com.example.app"\n')

    def test_stray_closing_brace(self):
        """A closing brace at top level is an error."""
        with pytest.raises(DescriptorParseError, match="Unexpected '}'"):
            parse_script("a = 1\n}")

    def test_trailing_tokens(self):
        """Two values in one statement are rejected."""
        with pytest.raises(DescriptorParseError, match="Expected end of statement"):
            parse_script("minSdk = 21 34")

    def test_bare_name_is_rejected(self):
        """A name on its own is not a statement."""
        with pytest.raises(DescriptorParseError) as exc_info:
            parse_script("android\n")
        assert exc_info.value.line == 1
