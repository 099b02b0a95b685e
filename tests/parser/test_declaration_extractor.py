"""Tests for the declaration extractor."""

import pytest

from docwen.parser import attach_doc_comment


def names(source_file) -> list[str]:
    return [d.signature.qualified_name for d in source_file.declarations]


class TestAttachDocComment:
    """Test the doc attachment rule."""

    @pytest.mark.parametrize(
        "block_end, decl_start, intervening, expected",
        [
            (3, 4, 0, True),
            (3, 5, 0, True),
            (3, 6, 0, False),
            (3, 4, 1, False),
            (4, 4, 0, True),
            (5, 4, 0, False),
        ],
    )
    def test_default_gap(self, block_end, decl_start, intervening, expected) -> None:
        """Test adjacency, one blank line, intervening code and same-line comments."""
        assert attach_doc_comment(block_end, decl_start, intervening) is expected

    def test_configurable_gap(self) -> None:
        """Test that the tolerated blank lines are configurable."""
        assert attach_doc_comment(3, 6, 0, max_blank_lines=2) is True
        assert attach_doc_comment(3, 5, 0, max_blank_lines=0) is False


class TestFreeFunctions:
    """Test extraction of plain C functions."""

    def test_documented_prototype(self, parse_text) -> None:
        """Test a prototype with a doc comment right above it."""
        source_file = parse_text("/** does foo */\nvoid foo(int x);\n")
        assert not source_file.has_errors
        [declaration] = source_file.declarations
        signature = declaration.signature
        assert signature.name == "foo"
        assert signature.qualifiers == ()
        assert signature.return_type == "void"
        assert [(p.type_tokens, p.name) for p in signature.parameters] == [
            (("int",), "x")
        ]
        assert (declaration.line_number, declaration.column) == (2, 6)
        assert declaration.is_definition is False
        assert declaration.doc.lines == ("/** does foo */",)
        assert declaration.doc.start_line == 1

    def test_definition_body_is_skipped(self, parse_text) -> None:
        """Test that a body with braces inside strings does not confuse scanning."""
        source = (
            'int main(void) { const char *s = "}"; if (s) { return 1; } return 0; }\n'
            "void after(void);\n"
        )
        source_file = parse_text(source, "main.c")
        assert names(source_file) == ["main", "after"]
        assert source_file.declarations[0].is_definition is True
        assert source_file.declarations[0].signature.parameters == ()

    def test_extraction_is_deterministic(self, parse_text) -> None:
        """Test that parsing the same text twice gives equal declarations."""
        source = "/// A.\nint a(int x);\nnamespace n { void b(char *s) {} }\n"
        assert parse_text(source).declarations == parse_text(source).declarations

    def test_multi_line_declaration_span(self, parse_text) -> None:
        """Test that the end line is the line closing the signature."""
        source_file = parse_text("int add(int a,\n        int b);\n")
        [declaration] = source_file.declarations
        assert (declaration.line_number, declaration.end_line_number) == (1, 2)
        assert [p.name for p in declaration.signature.parameters] == ["a", "b"]

    def test_specifiers_are_not_return_type(self, parse_text) -> None:
        """Test that storage and inline specifiers are dropped from the return type."""
        source_file = parse_text("static inline int helper(void) { return 1; }\n", "a.c")
        [declaration] = source_file.declarations
        assert declaration.signature.return_type == "int"
        assert declaration.is_definition is True

    def test_default_arguments(self, parse_text) -> None:
        """Test that default values are captured separately from the type."""
        source_file = parse_text(
            "void log(const char* msg, int level = 3, bool flush = false);\n", "log.hpp"
        )
        parameters = source_file.declarations[0].signature.parameters
        assert [(p.type_tokens, p.name, p.default_value) for p in parameters] == [
            (("const", "char", "*"), "msg", None),
            (("int",), "level", "3"),
            (("bool",), "flush", "false"),
        ]

    def test_unnamed_and_array_parameters(self, parse_text) -> None:
        """Test unnamed parameters and array declarators."""
        source_file = parse_text("int sum(const int values[], int);\n")
        parameters = source_file.declarations[0].signature.parameters
        assert parameters[0].name == "values"
        assert parameters[0].type_tokens == ("const", "int", "[", "]")
        assert parameters[1].name is None
        assert parameters[1].type_tokens == ("int",)

    def test_function_pointer_parameter(self, parse_text) -> None:
        """Test that the name inside a function-pointer declarator is found."""
        source_file = parse_text("void set_handler(void (*handler)(int), void *ctx);\n")
        parameters = source_file.declarations[0].signature.parameters
        assert [p.name for p in parameters] == ["handler", "ctx"]
        assert "handler" not in parameters[0].type_tokens

    def test_attribute_is_skipped(self, parse_text) -> None:
        """Test that a leading [[attribute]] is not part of the return type."""
        source_file = parse_text("[[nodiscard]] int compute(int x);\n", "a.hpp")
        [declaration] = source_file.declarations
        assert declaration.signature.name == "compute"
        assert declaration.signature.return_type == "int"


class TestNonFunctions:
    """Test that things looking like calls or pointers are ignored."""

    def test_variables_and_types(self, parse_text) -> None:
        """Test function pointers, initializers, typedefs and type definitions."""
        source = """\
int (*handler)(int);
int values[] = { f(1), g(2) };
int total = compute(3, 4);
typedef void (*callback_t)(int);
using fn = void(int);
struct Point { int x; int y; };
enum Color { RED, GREEN };
enum class Mode : int { A, B };
"""
        source_file = parse_text(source, "types.hpp")
        assert source_file.declarations == []
        assert not source_file.has_errors

    def test_calls_at_file_scope(self, parse_text) -> None:
        """Test that calls and macro invocations are not declarations."""
        source_file = parse_text("foo(1, 2);\nMACRO(foo);\nvoid real(void);\n")
        assert names(source_file) == ["real"]
        assert source_file.declarations[0].signature.return_type == "void"
        assert source_file.declarations[0].line_number == 3

    def test_macro_invocation_before_declaration(self, parse_text) -> None:
        """Test that a macro without semicolon does not swallow the next declaration."""
        source = (
            "DECLARE_HANDLE(widget)\n"
            "/** Creates a widget. */\n"
            "widget create_widget(void);\n"
        )
        source_file = parse_text(source)
        [declaration] = source_file.declarations
        assert declaration.signature.name == "create_widget"
        assert declaration.signature.parameters == ()
        assert declaration.signature.return_type == "widget"
        assert declaration.doc.normalized_lines == ("Creates a widget.",)

    def test_object_like_macro_before_documented_declaration(self, parse_text) -> None:
        """Test that a lone macro name ends at the comment after it."""
        source = "G_BEGIN_DECLS\n\n/** Runs g. */\nvoid g(void);\n"
        [declaration] = parse_text(source).declarations
        assert declaration.signature.return_type == "void"
        assert declaration.doc.normalized_lines == ("Runs g.",)

    def test_split_return_type_still_joins(self, parse_text) -> None:
        """Test that a type name alone on its line stays the return type."""
        [declaration] = parse_text("size_t\ncount_items(void);\n").declarations
        assert declaration.signature.return_type == "size_t"


class TestScopes:
    """Test namespaces, classes and qualified names."""

    def test_class_members(self, parse_text) -> None:
        """Test constructors, destructors and methods inside a namespace."""
        source = """\
namespace ns {

class Widget {
public:
    Widget();
    ~Widget();
    void resize(int w, int h);
    int size() const;
};

}
"""
        source_file = parse_text(source, "widget.hpp")
        assert names(source_file) == [
            "ns::Widget::Widget",
            "ns::Widget::~Widget",
            "ns::Widget::resize",
            "ns::Widget::size",
        ]
        assert source_file.declarations[3].signature.trailing_qualifiers == ("const",)
        assert not source_file.has_errors

    def test_out_of_line_definitions(self, parse_text) -> None:
        """Test that out-of-line definitions carry the same scope path."""
        source = """\
namespace ns {
Widget::Widget() {}
Widget::~Widget() {}
void Widget::resize(int w, int h) {}
int Widget::size() const { return 0; }
}
"""
        source_file = parse_text(source, "widget.cpp")
        assert names(source_file) == [
            "ns::Widget::Widget",
            "ns::Widget::~Widget",
            "ns::Widget::resize",
            "ns::Widget::size",
        ]
        assert all(d.is_definition for d in source_file.declarations)

    def test_template_qualifiers(self, parse_text) -> None:
        """Test template arguments kept in a specialization's qualifier."""
        source_file = parse_text(
            "template <>\nvoid Outer<int>::Inner::baz(int) {}\n", "a.hpp"
        )
        [declaration] = source_file.declarations
        assert declaration.signature.qualifiers == ("Outer<int>", "Inner")
        assert declaration.signature.name == "baz"
        assert declaration.signature.return_type == "void"
        assert declaration.signature.parameters[0].type_tokens == ("int",)

    def test_class_template_member_defined_out_of_line(self, parse_text) -> None:
        """Test that `Box<T>::put` qualifies like the in-class `put`."""
        source = (
            "template <typename T, int N = 4>\n"
            "class Box {\n"
            "public:\n"
            "    /// Stores a value.\n"
            "    void put(const T& value);\n"
            "};\n"
            "\n"
            "template <typename T, int N>\n"
            "void Box<T, N>::put(const T& value) {}\n"
        )
        in_class, out_of_line = parse_text(source, "box.hpp").declarations
        assert in_class.signature.qualifiers == ("Box",)
        assert out_of_line.signature.qualifiers == ("Box",)
        assert out_of_line.signature.return_type == "void"

    def test_partial_specialization_keeps_arguments(self, parse_text) -> None:
        """Test that arguments other than plain parameters stay in the qualifier."""
        [declaration] = parse_text(
            "template <typename T>\nvoid Box<T*>::put(T* value) {}\n"
        ).declarations
        assert declaration.signature.qualifiers == ("Box<T*>",)

    def test_constructor_initializer_list(self, parse_text) -> None:
        """Test an inline constructor with a member initializer list."""
        source = """\
class Counter {
public:
    Counter(int start) : value_(start), limit_{10} {}
private:
    int value_;
    int limit_;
};
"""
        source_file = parse_text(source, "counter.hpp")
        [declaration] = source_file.declarations
        assert declaration.signature.qualified_name == "Counter::Counter"
        assert declaration.is_definition is True

    def test_operators(self, parse_text) -> None:
        """Test operator function names."""
        source = """\
struct V {
    bool operator==(const V& o) const;
    int operator()(int x);
    void* operator new[](unsigned long n);
    explicit operator bool() const;
};
long double operator""_km(long double v);
"""
        source_file = parse_text(source, "v.hpp")
        assert [d.signature.name for d in source_file.declarations] == [
            "operator==",
            "operator()",
            "operator new[]",
            "operator bool",
            'operator""_km',
        ]
        assert source_file.declarations[0].signature.qualifiers == ("V",)
        assert source_file.declarations[4].signature.qualifiers == ()

    def test_friend_uses_enclosing_namespace(self, parse_text) -> None:
        """Test that a friend function belongs to the namespace, not the class."""
        source = """\
namespace geo {
struct Point {
    friend bool operator==(const Point& a, const Point& b);
};
}
"""
        source_file = parse_text(source, "point.hpp")
        [declaration] = source_file.declarations
        assert declaration.signature.qualifiers == ("geo",)
        assert declaration.signature.return_type == "bool"

    def test_trailing_qualifiers(self, parse_text) -> None:
        """Test pure virtual, noexcept, override and trailing return types."""
        source = """\
class Base {
public:
    virtual void draw() const = 0;
    void update() noexcept override;
    auto area() const -> int;
};
"""
        source_file = parse_text(source, "base.hpp")
        draw, update, area = (d.signature for d in source_file.declarations)
        assert draw.trailing_qualifiers == ("const", "= 0")
        assert draw.return_type == "void"
        assert update.trailing_qualifiers == ("noexcept", "override")
        assert area.trailing_qualifiers == ("const",)
        assert area.return_type == "int"

    def test_extern_c_block(self, parse_text) -> None:
        """Test an extern "C" block split by preprocessor guards."""
        source = """\
#ifdef __cplusplus
extern "C" {
#endif

/** Opens a handle. */
int open_handle(const char *name);

#ifdef __cplusplus
}
#endif
"""
        source_file = parse_text(source, "handle.h")
        assert not source_file.has_errors
        [declaration] = source_file.declarations
        assert declaration.signature.qualifiers == ()
        assert declaration.doc.normalized_lines == ("Opens a handle.",)


class TestDocAttachment:
    """Test which comments become documentation."""

    def test_directive_blocks_attachment(self, parse_text) -> None:
        """Test that a directive between comment and declaration prevents attachment."""
        source = "/** Documented? */\n#if defined(FOO)\nvoid guarded(void);\n#endif\n"
        [declaration] = parse_text(source).declarations
        assert declaration.doc is None

    def test_gap_limit(self, parse_text) -> None:
        """Test the blank-line limit between comment and declaration."""
        source = "/** Far away. */\n\n\nvoid far(void);\n"
        assert parse_text(source).declarations[0].doc is None
        assert parse_text(source, max_doc_gap=2).declarations[0].doc is not None

    def test_trailing_comment_is_not_documentation(self, parse_text) -> None:
        """Test that a comment after code on the previous line is not attached."""
        source = "int x; // counter\nvoid next(void);\n"
        [declaration] = parse_text(source).declarations
        assert declaration.doc is None

    def test_comment_for_previous_statement_is_not_reused(self, parse_text) -> None:
        """Test that a comment above a variable is not attached to a later function."""
        source = "/** The counter. */\nint counter;\nvoid next(void);\n"
        [declaration] = parse_text(source).declarations
        assert declaration.doc is None


class TestStructuralErrors:
    """Test recovery from unbalanced input."""

    def test_unterminated_parameter_list_is_skipped(self, parse_text) -> None:
        """Test that a broken region is reported and scanning continues."""
        source = "void broken(int a;\n/** ok */\nvoid fine(void);\n"
        source_file = parse_text(source, "broken.c")
        assert names(source_file) == ["fine"]
        assert source_file.declarations[0].doc.normalized_lines == ("ok",)
        [error] = source_file.errors
        assert error.fatal is False
        assert error.line_number == 1

    def test_unmatched_closing_brace_is_fatal(self, parse_text) -> None:
        """Test that extraction stops at an unmatched '}'."""
        source_file = parse_text("void a(void);\n}\nvoid b(void);\n")
        assert names(source_file) == ["a"]
        [error] = source_file.errors
        assert error.fatal is True
        assert error.line_number == 2

    def test_unclosed_namespace(self, parse_text) -> None:
        """Test that declarations before a never-closed scope are kept."""
        source_file = parse_text("namespace ns {\nvoid a(void);\n")
        assert names(source_file) == ["ns::a"]
        [error] = source_file.errors
        assert error.fatal is True
        assert "never closed" in error.message

    def test_unbalanced_body(self, parse_text) -> None:
        """Test that a function body missing its '}' is fatal."""
        source_file = parse_text("void f(void) {\n  if (x) {\n}\n", "f.c")
        assert source_file.declarations == []
        [error] = source_file.errors
        assert "Unbalanced '{'" in error.message
