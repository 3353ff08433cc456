"""Tests for expression evaluation semantics.

Expressions follow JavaScript rules for stringification, truthiness,
equality and arithmetic, evaluated by a sandboxed interpreter.
"""

from __future__ import annotations

from datetime import date, datetime

import pytest

from litpage import Environment, TemplateRuntimeError, UndefinedError


def render(env: Environment, source: str, **context) -> str:
    return env.from_string(source, name="expr.html").render(context)


class TestStringification:
    @pytest.mark.parametrize(
        ("source", "expected"),
        [
            ("${true}", "true"),
            ("${false}", "false"),
            ("${null}", "null"),
            ("${undefined}", "undefined"),
            ("${1.0 * 3}", "3"),
            ("${0.1 + 0.2}", "0.30000000000000004"),
            ("${1 / 0}", "Infinity"),
            ("${-1 / 0}", "-Infinity"),
            ("${0 / 0}", "NaN"),
            ("${[1, 'a', null, undefined, [2, 3]]}", "1,a,,,2,3"),
            ("${({a: 1})}", "[object Object]"),
            ("${1e21}", "1e+21"),
            ("${`a${1 + 1}b`}", "a2b"),
        ],
    )
    def test_values(self, env: Environment, source: str, expected: str) -> None:
        assert render(env, source) == expected

    def test_python_values(self, env: Environment) -> None:
        result = render(env, "${n}|${f}|${items}|${obj}", n=None, f=2.0, items=(1, 2), obj={"a": 1})
        assert result == "null|2|1,2|[object Object]"

    def test_only_the_backslash_before_dollar_brace_is_consumed(self, env: Environment) -> None:
        assert render(env, r"\\${x}", x="X") == r"\${x}"


class TestNumberPrecision:
    """Numbers are doubles: integers beyond 2**53 round, overflow is Infinity."""

    @pytest.mark.parametrize(
        ("source", "expected"),
        [
            ("${2 ** 64}", "18446744073709552000"),
            ("${2 ** 53 + 1}", "9007199254740992"),
            ("${2 ** 53 - 1}", "9007199254740991"),
            ("${(2 ** 53 + 1) === 2 ** 53}", "true"),
            ("${9007199254740993}", "9007199254740992"),
            ("${1e20}", "100000000000000000000"),
            ("${parseInt('123456789012345678901')}", "123456789012345680000"),
            ("${(10 ** 300) * (10 ** 300)}", "Infinity"),
            ("${-(10 ** 300) * 10 ** 300}", "-Infinity"),
            ("${2 ** 1024}", "Infinity"),
            ("${(-2) ** 1025}", "-Infinity"),
            ("${0 ** -1}", "Infinity"),
        ],
    )
    def test_arithmetic(self, env: Environment, source: str, expected: str) -> None:
        assert render(env, source) == expected

    def test_repeated_squaring_overflows(self, env: Environment) -> None:
        source = "${'x'.repeat(22).split('').reduce(a => a * a, 10)}"
        assert render(env, source) == "Infinity"

    def test_long_product_overflows(self, env: Environment) -> None:
        source = "${" + " * ".join(["(10 ** 300)"] * 15) + "}"
        assert render(env, source) == "Infinity"

    def test_large_python_int_prints_as_double(self, env: Environment) -> None:
        assert render(env, "${n}|${n + 1}", n=2**64) == "18446744073709552000|18446744073709552000"


class TestOperators:
    @pytest.mark.parametrize(
        ("source", "expected"),
        [
            ("${1 + 2}", "3"),
            ("${'1' + 2}", "12"),
            ("${1 + '2'}", "12"),
            ("${'3' * '4'}", "12"),
            ("${7 % 3}", "1"),
            ("${-7 % 3}", "-1"),
            ("${5 / 2}", "2.5"),
            ("${2 ** 10}", "1024"),
            ("${1 + true}", "2"),
            ("${[1, 2] + ''}", "1,2"),
            ("${'b' > 'a'}", "true"),
            ("${'10' < 9}", "false"),
            ("${1 == '1'}", "true"),
            ("${1 === '1'}", "false"),
            ("${null == undefined}", "true"),
            ("${null === undefined}", "false"),
            ("${NaN == NaN}", "false"),
            ("${!''}", "true"),
            ("${!!'x'}", "true"),
            ("${-'3'}", "-3"),
            ("${+'4.5'}", "4.5"),
            ("${typeof 1}", "number"),
            ("${typeof 'a'}", "string"),
            ("${typeof null}", "object"),
            ("${typeof missing}", "undefined"),
            ("${typeof escape}", "function"),
        ],
    )
    def test_operator(self, env: Environment, source: str, expected: str) -> None:
        assert render(env, source) == expected

    def test_logical_operators_return_operands(self, env: Environment) -> None:
        assert render(env, "${0 || 'fallback'}") == "fallback"
        assert render(env, "${'a' && 'b'}") == "b"
        assert render(env, "${0 ?? 'unused'}") == "0"
        assert render(env, "${null ?? 'default'}") == "default"

    def test_short_circuit_skips_missing_names(self, env: Environment) -> None:
        assert render(env, "${true || missing}") == "true"
        assert render(env, "${false && missing}") == "false"
        assert render(env, "${flag ? 'yes' : missing}", flag=True) == "yes"

    def test_empty_collections_are_truthy(self, env: Environment) -> None:
        assert render(env, "${items ? 'yes' : 'no'}", items=[]) == "yes"
        assert render(env, "${obj ? 'yes' : 'no'}", obj={}) == "yes"


class TestMembers:
    def test_mapping_keys(self, env: Environment) -> None:
        assert render(env, "${user.name}", user={"name": "Ada"}) == "Ada"
        assert render(env, "${user['first name']}", user={"first name": "Ada"}) == "Ada"

    def test_missing_key_is_undefined(self, env: Environment) -> None:
        assert render(env, "${user.age}", user={}) == "undefined"
        assert render(env, "${user.age ?? 'n/a'}", user={}) == "n/a"

    def test_array_index_and_length(self, env: Environment) -> None:
        assert render(env, "${items[1]}|${items.length}|${items[9]}", items=["a", "b"]) == "b|2|undefined"

    def test_optional_chaining(self, env: Environment) -> None:
        assert render(env, "${user?.name}", user=None) == "undefined"
        assert render(env, "${user?.profile?.name ?? 'anon'}", user={}) == "anon"

    def test_member_of_null_raises(self, env: Environment) -> None:
        with pytest.raises(TemplateRuntimeError, match="Cannot read properties of null"):
            render(env, "${user.name}", user=None)

    def test_python_attributes_are_not_reachable(self, env: Environment) -> None:
        assert render(env, "${title.__class__}", title="x") == "undefined"
        assert render(env, "${items.__len__}", items=[1]) == "undefined"
        assert render(env, "${escape.__globals__}") == "undefined"

    def test_string_methods(self, env: Environment) -> None:
        source = (
            "${s.toUpperCase()}|${s.slice(1, 3)}|${s.includes('ell')}|"
            "${s.split('l').length}|${s.padStart(7, '*')}|${s.replace('l', 'L')}|"
            "${s.replaceAll('l', 'L')}|${'  x '.trim()}|${s.at(-1)}"
        )
        assert render(env, source, s="hello") == "HELLO|el|true|3|**hello|heLlo|heLLo|x|o"

    def test_number_methods(self, env: Environment) -> None:
        assert render(env, "${n.toFixed(2)}|${(255).toString(16)}", n=3.14159) == "3.14|ff"

    def test_repeat_is_bounded(self, env: Environment) -> None:
        with pytest.raises(TemplateRuntimeError, match="Invalid string length"):
            render(env, "${'x'.repeat(1e9)}")


class TestArraysAndArrows:
    def test_map_join(self, env: Environment) -> None:
        source = "<ul>${items.map(i => `<li>${i}</li>`).join('')}</ul>"
        assert render(env, source, items=["a", "b"]) == "<ul><li>a</li><li>b</li></ul>"

    def test_map_receives_index(self, env: Environment) -> None:
        assert render(env, "${items.map((x, i) => i + ':' + x).join(',')}", items=["a", "b"]) == "0:a,1:b"

    def test_filter_find_some_every(self, env: Environment) -> None:
        context = {"nums": [1, 2, 3, 4]}
        assert render(env, "${nums.filter(n => n % 2 === 0)}", **context) == "2,4"
        assert render(env, "${nums.find(n => n > 2)}", **context) == "3"
        assert render(env, "${nums.some(n => n > 3)}|${nums.every(n => n > 0)}", **context) == "true|true"

    def test_reduce(self, env: Environment) -> None:
        assert render(env, "${nums.reduce((a, b) => a + b, 0)}", nums=[1, 2, 3]) == "6"

    def test_reverse_does_not_mutate(self, env: Environment) -> None:
        items = [1, 2, 3]
        assert render(env, "${items.reverse()}|${items}", items=items) == "3,2,1|1,2,3"
        assert items == [1, 2, 3]

    def test_closures_see_outer_names(self, env: Environment) -> None:
        assert render(env, "${items.map(i => prefix + i).join(' ')}", items=[1, 2], prefix="#") == "#1 #2"

    def test_missing_arguments_are_undefined(self, env: Environment) -> None:
        assert render(env, "${((a, b) => b)(1)}") == "undefined"

    def test_object_literal_values(self, env: Environment) -> None:
        assert render(env, "${JSON.stringify({a: 1, b: [true, null]})}") == '{"a":1,"b":[true,null]}'


class TestBuiltins:
    def test_escape(self, env: Environment) -> None:
        result = render(env, "${escape('<script>alert(1)</script>')}")
        assert "&lt;script&gt;" in result
        assert "<script>" not in result

    def test_escape_quotes(self, env: Environment) -> None:
        assert render(env, "${escape(s)}", s="\"'&") == "&quot;&#x27;&amp;"

    def test_uri_functions(self, env: Environment) -> None:
        assert render(env, "${encodeURIComponent('a b/c?')}") == "a%20b%2Fc%3F"
        assert render(env, "${decodeURIComponent('a%20b')}") == "a b"

    def test_malformed_uri_raises(self, env: Environment) -> None:
        with pytest.raises(TemplateRuntimeError, match="URI malformed"):
            render(env, "${decodeURIComponent('%')}")

    def test_number_parsing(self, env: Environment) -> None:
        assert render(env, "${parseInt('42px')}|${parseInt('ff', 16)}|${parseFloat('3.5em')}") == "42|255|3.5"
        assert render(env, "${parseInt('abc')}") == "NaN"

    def test_math(self, env: Environment) -> None:
        assert render(env, "${Math.max(1, 5, 3)}|${Math.round(2.5)}|${Math.floor(-1.5)}") == "5|3|-2"

    def test_json_parse(self, env: Environment) -> None:
        assert render(env, "${JSON.parse(raw).items.length}", raw='{"items": [1, 2]}') == "2"

    def test_object_helpers(self, env: Environment) -> None:
        source = "${Object.keys(o).join()}|${Object.entries(o).map(e => e[0] + '=' + e[1]).join('&')}"
        assert render(env, source, o={"a": 1, "b": 2}) == "a,b|a=1&b=2"

    def test_harness_helpers(self, env: Environment) -> None:
        source = "${join(map(items, i => i * 2), '-')}|${join(filter(items, i => i > 1), '-')}|${map(null, i => i)}"
        assert render(env, source, items=[1, 2, 3]) == "2-4-6|2-3|"

    def test_string_number_boolean(self, env: Environment) -> None:
        assert render(env, "${String(1)}|${Number('7') + 1}|${Boolean('')}") == "1|8|false"

    def test_dates(self, env: Environment) -> None:
        result = render(env, "${d.getFullYear()}-${d.getMonth() + 1}", d=date(2024, 3, 9))
        assert result == "2024-3"
        iso = render(env, "${new Date('2024-03-09T10:00:00Z').toISOString()}")
        assert iso == "2024-03-09T10:00:00.000Z"
        assert render(env, "${typeof Date.now()}") == "number"

    def test_datetime_context_value(self, env: Environment) -> None:
        assert render(env, "${when.getDate()}", when=datetime(2024, 1, 31, 12, 0)) == "31"

    def test_env_snapshot_is_available(self, env: Environment, monkeypatch) -> None:
        monkeypatch.setenv("LITPAGE_GREETING", "hello")
        assert render(env, "${env.LITPAGE_GREETING}") == "hello"


class TestFailures:
    def test_undefined_name_raises(self, env: Environment) -> None:
        with pytest.raises(UndefinedError) as exc_info:
            render(env, "<p>${titl}</p>", title="x")
        error = exc_info.value
        assert error.name == "titl"
        assert "Did you mean 'title'" in str(error)
        assert "expr.html" in str(error)

    def test_calling_non_function_raises(self, env: Environment) -> None:
        with pytest.raises(TemplateRuntimeError, match="is not a function"):
            render(env, "${title()}", title="x")

    def test_python_callable_in_data_is_inert(self, env: Environment) -> None:
        with pytest.raises(TemplateRuntimeError, match="is not a function"):
            render(env, "${config.run('rm -rf /')}", config={"run": print})

    def test_new_on_non_constructor_raises(self, env: Environment) -> None:
        with pytest.raises(TemplateRuntimeError, match="not a constructor"):
            render(env, "${new Math()}")

    def test_runtime_error_has_location(self, env: Environment) -> None:
        with pytest.raises(TemplateRuntimeError) as exc_info:
            render(env, "<p>\n${user.name}\n</p>", user=None)
        error = exc_info.value
        assert error.lineno == 2
        assert error.template_name == "expr.html"
        assert error.expression == "user.name"
