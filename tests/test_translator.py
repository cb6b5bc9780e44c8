"""Tests for the line-by-line translation state machine."""

import shutil

import pytest

from goheader.errors import UnbalancedBlockError
from goheader.gofmt import format_source
from goheader.translator import COMMENT_LINE, Config, Translator, go_base, translate


def body(src, **cfg):
    return Translator(Config(**cfg)).run(src.splitlines()).splitlines()


def test_preamble():
    out = translate(["#define A 1"], "sys", cmd="goheader -p sys")
    assert out.startswith(
        "// goheader -p sys\n// MACHINE GENERATED; DO NOT EDIT\n// ===\n\npackage sys\n\n"
    )
    assert out.endswith("const A = 1\n")
    assert go_base("c", "p").count("package p") == 1


def test_typedef_then_struct_uses_alias():
    src = """\
typedef unsigned long ulong_t;
struct Point {
    ulong_t x;
    ulong_t y;
};
"""
    assert body(src) == [
        "type ulong_t uint64",
        "type Point struct {",
        "\tX ulong_t",
        "\tY ulong_t",
        "}",
    ]


def test_single_define_has_no_group():
    assert body("#define MAX_LEN 256") == ["const MAX_LEN = 256"]


def test_function_macro_is_flagged():
    assert body("#define SQUARE(x) ((x)*(x))") == [COMMENT_LINE + "#define SQUARE(x) ((x)*(x))"]


def test_define_group_closed_by_blank_line():
    src = """\
#define A 1
#define B 2

int foo(void);
"""
    assert body(src) == [
        "const (",
        "\tA = 1",
        "\tB = 2",
        ")",
        "",
        "//!!! int foo(void);",
    ]


def test_define_group_closed_at_end_of_input():
    assert body("#define A 1\n#define B 2") == ["const (", "\tA = 1", "\tB = 2", ")"]


def test_define_keeps_comment_and_drops_literal_suffix():
    assert body("#define X 10UL /* ten */") == ["const X = 10 // ten"]


def test_parentheses_in_trailing_comment_are_not_a_macro():
    assert body("#define Y 5 // (see docs)") == ["const Y = 5 // (see docs)"]


def test_typedef_group():
    src = """\
typedef int a_t;
typedef a_t b_t;
typedef foo c_t;

"""
    assert body(src) == [
        "type (",
        "\ta_t int32",
        "\tb_t a_t",
        "\t//!!! c_t foo",
        ")",
        "",
    ]


def test_unresolved_single_typedef_is_flagged():
    assert body("typedef struct foo foo_t;") == ["//!!! type foo_t struct foo"]


def test_typedef_name_is_registered_before_resolution():
    assert body("typedef node_t node_t;") == ["type node_t node_t"]


def test_typedef_pointer_and_array():
    src = "typedef char *str_t;\ntypedef int vec_t[3];\n"
    assert body(src) == ["type (", "\tstr_t *int8", "\tvec_t [3]int32", ")"]


def test_define_closes_type_group():
    src = "typedef int a;\ntypedef int b;\n#define X 1\n"
    assert body(src) == ["type (", "\ta int32", "\tb int32", ")", "const X = 1"]


def test_struct_closes_const_group():
    src = """\
#define A 1
#define B 2
struct s {
    int x;
};
"""
    assert body(src) == [
        "const (",
        "\tA = 1",
        "\tB = 2",
        ")",
        "type S struct {",
        "\tX int32",
        "}",
    ]


def test_struct_fields():
    src = """\
struct stat {
    int st_mode; /* mode */
    char *st_name;
    unsigned char st_pad[4];
    struct stat *st_next;
    void *st_data;

    // trailing note
} ;
"""
    assert body(src) == [
        "type Stat struct {",
        "\tMode int32 // mode",
        "\tName *int8",
        "\tPad [4]uint8",
        "\tNext *Stat",
        "\t//!!! Data *void",
        "",
        "\t// trailing note",
        "}",
    ]


def test_struct_end_with_declarator_is_kept():
    assert body("struct s {\n    int x;\n} var;") == [
        "type S struct {",
        "\tX int32",
        "}",
        "//!!! } var;",
    ]


def test_no_field_is_dropped():
    src = "struct s {\n    int a;\n    mystery_t b;\n    unsigned flag : 1;\n};\n"
    lines = body(src)
    fields = [ln for ln in lines if ln.startswith("\t")]
    assert len(fields) == 3
    assert sum(1 for ln in fields if COMMENT_LINE in ln) == 2


def test_enum_implicit_successors():
    src = """\
enum color {
    RED = 5,
    GREEN,
    BLUE,
};
"""
    assert body(src) == [
        "const (",
        "\t// enum Color",
        "\tRED = 5",
        "\tGREEN = 6",
        "\tBLUE = 7",
        "",
        ")",
    ]


def test_enum_starts_at_zero_by_default():
    assert body("enum e {\n    a,\n    b\n};") == [
        "const (",
        "\t// enum E",
        "\tA = 0",
        "\tB = 1",
        "",
        ")",
    ]


def test_strict_enums_flag_the_first_bare_enumerator():
    assert body("enum e {\n    a,\n    b = 4,\n    c\n};", enum_zero_start=False) == [
        "const (",
        "\t// enum E",
        "\t//!!! a,",
        "\tB = 4",
        "\tC = 5",
        "",
        ")",
    ]


def test_non_integer_value_makes_successor_unknown():
    src = "enum e {\n    A = FOO,\n    B,\n    C = 0x3,\n    D\n};"
    assert body(src)[2:6] == [
        "\tA = FOO",
        "\t//!!! B,",
        "\tC = 0x3",
        "\tD = 4",
    ]


def test_enum_reuses_open_const_group():
    src = "#define A 1\n#define B 2\nenum e {\n    X,\n\n    Y,\n};\n"
    assert body(src) == [
        "const (",
        "\tA = 1",
        "\tB = 2",
        "\t// enum E",
        "\tX = 0",
        "",
        "\tY = 1",
        "",
        ")",
    ]


def test_unterminated_enum_is_reported():
    with pytest.raises(UnbalancedBlockError) as exc:
        Translator(filename="e.h").run(["enum e {", "    A = 1,"])
    assert "enum body not closed" in str(exc.value)
    assert exc.value.lineno == 1
    assert str(exc.value).startswith("e.h:1:")


def test_unterminated_struct_is_reported():
    with pytest.raises(UnbalancedBlockError, match="struct"):
        Translator().run(["struct s {", "    int x;"])


def test_unterminated_comment_is_reported():
    with pytest.raises(UnbalancedBlockError, match="comment"):
        Translator().run(["int a;", "/* never", "closed"])


def test_single_line_comment():
    assert body("/* single */") == ["// single"]


def test_block_comment():
    src = """\
/*
 * Hello
 *
 * World */
int x;
"""
    assert body(src) == ["// Hello", "//", "// World", COMMENT_LINE + "int x;"]


def test_code_around_block_comment_is_translated():
    assert body("/* start\nend */ #define A 1") == ["// start", "// end", "const A = 1"]
    assert body("#define A 1 /* start\n more */") == ["const A = 1", "// start", "// more"]


def test_unrecognised_line_survives_verbatim():
    line = "  extern int foo(int a, char *b);"
    assert body(line) == [COMMENT_LINE + line]


def test_blank_and_go_comments_pass_through():
    assert body("// hi\n\n") == ["// hi", ""]


def test_typedef_inside_struct_is_flagged():
    assert body("struct s {\n    typedef int t;\n};")[1] == "\t//!!!     typedef int t;"


def test_unsigned_char_option():
    assert body("typedef char c_t;", char_signed=False) == ["type c_t uint8"]


def test_flagged_counter():
    tr = Translator()
    tr.run(["#include <stdio.h>", "#define F(x) x", "#define A 1"])
    assert tr.flagged == 2


def test_comment_opener_inside_string_is_a_constant():
    src = """\
#define COMMENT_START "/*"
#define A 1
struct s {
    int x;
};
"""
    assert body(src) == [
        "const (",
        '\tCOMMENT_START = "/*"',
        "\tA = 1",
        ")",
        "type S struct {",
        "\tX int32",
        "}",
    ]


def test_string_value_keeps_its_trailing_comment():
    assert body('#define OPEN "/*" /* opener */') == ['const OPEN = "/*" // opener']


def test_suffixes_are_dropped_inside_expressions():
    assert body("#define BIT31 1U << 31") == ["const BIT31 = 1 << 31"]
    assert body("enum e {\n    A = 1UL << 2,\n    B\n};") == [
        "const (",
        "\t// enum E",
        "\tA = 1 << 2",
        "\t//!!! B",
        "",
        ")",
    ]


def test_values_go_cannot_parse_are_flagged():
    assert body("#define NEG ~0") == ["//!!! #define NEG ~0"]
    assert body("enum e {\n    A = (int)5,\n};")[2] == "\t//!!! A = (int)5,"


def test_go_keyword_names_are_flagged():
    assert body("typedef int type;") == ["//!!! type type int32"]
    assert body("#define func 1") == ["//!!! #define func 1"]


def test_keyword_typedef_is_not_registered():
    assert body("typedef int type;\n\nstruct s {\n    type t;\n};")[-2] == "\t//!!! T type"


def test_typedef_flagged_inside_body_is_not_registered():
    src = """\
struct s {
    typedef int t;
};
struct u {
    t x;
};
"""
    assert body(src)[-2] == "\t//!!! X t"


def test_multiple_declarators_are_kept_verbatim():
    assert body("struct s {\n    int a, b;\n};") == [
        "type S struct {",
        "\t//!!!     int a, b;",
        "}",
    ]
    assert body("typedef int a, b;") == ["//!!! typedef int a, b;"]


SAMPLE_H = """\
/* sample.h: system types */
#ifndef SAMPLE_H
#define SAMPLE_H

#define COMMENT_START "/*"
#define BIT31 1U << 31
#define NEG ~0
#define SQUARE(x) ((x)*(x))

typedef unsigned long ulong_t;
typedef int type;
typedef struct foo foo_t;

enum color {
    RED = 5,
    GREEN, /* implied */
    BLUE = 1UL << 4,
    CYAN,
};

struct stat {
    ulong_t st_size;
    char *st_name;
    int a, b;
    struct stat *st_next;
} ;

#endif
"""


@pytest.mark.skipif(shutil.which("gofmt") is None, reason="gofmt not installed")
@pytest.mark.parametrize(
    "src",
    [
        SAMPLE_H,
        "#define BIT31 1U << 31",
        "enum e {\n    A = 1UL << 2,\n    B = (int)3,\n};",
        "typedef int type;\n#define func 1",
        "struct s {\n    int a, b;\n    typedef int t;\n} v;",
    ],
)
def test_raw_output_is_accepted_by_gofmt(src):
    out = format_source(translate(src.splitlines(), "sample", cmd="goheader -p sample"))
    assert "package sample" in out
