from __future__ import annotations

from pathlib import Path

import pytest

from dslgen.domain import DomainType
from dslgen.generator import generate
from dslgen.ir import ArgumentList, CodeBlock, FileSpecBuilder, FunctionSpecBuilder, Modifier, ParameterSpecBuilder
from dslgen.renderer import GENERATED_HEADER, RenderError, format_code, format_parameter, render_file, write_files
from dslgen.typenames import STRING, ClassName

OPTIONS = {
    "projectRootClasspath": "io.violabs.starship",
    "dslBuilderClasspath": "io.violabs.core",
}


def test_format_code_placeholders() -> None:
    builder = ClassName.of("io.x", "FooDslBuilder")
    assert format_code(CodeBlock.of("val builder = %T()", builder)) == "val builder = FooDslBuilder()"
    assert format_code(CodeBlock.of("this.%N = %S", "name", 'say "hi" $x')) == 'this.name = "say \\"hi\\" \\$x"'
    assert format_code(CodeBlock.of("%L%%", 50)) == "50%"

    param = ParameterSpecBuilder().with_name("value").with_type(STRING).build()
    assert format_code(CodeBlock.of("this.%N = %N", "name", param)) == "this.name = value"


def test_format_code_argument_list() -> None:
    arguments = ArgumentList(
        (
            CodeBlock.of("%N = %L", "name", CodeBlock.of("vRequireNotNull(::%N)", "name")),
            CodeBlock.of("%N = %L", "notes", CodeBlock.of("%N", "notes")),
        )
    )
    text = format_code(CodeBlock.of("return %T(%L)", ClassName.of("io.x", "Foo"), arguments))
    assert text == "return Foo(\n    name = vRequireNotNull(::name),\n    notes = notes\n)"


def test_format_code_argument_mismatch() -> None:
    with pytest.raises(RenderError, match="Not enough arguments"):
        format_code(CodeBlock.of("%N = %N", "a"))
    with pytest.raises(RenderError, match="Too many arguments"):
        format_code(CodeBlock.of("%N", "a", "b"))
    with pytest.raises(RenderError, match="%T expects a type name"):
        format_code(CodeBlock.of("%T()", "Foo"))


def test_render_star_ship_builder(star_ship: DomainType, passenger: DomainType) -> None:
    result = generate([star_ship, passenger], OPTIONS)
    text = render_file(result.files[0])

    assert text.startswith(GENERATED_HEADER + "\n\npackage io.violabs.starship\n")
    assert text.endswith("}\n")
    assert "import io.violabs.core.DslBuilder\n" in text
    assert "import io.violabs.core.vRequireMapNotEmpty\n" in text
    assert "vRequireCollectionNotEmpty" not in text
    assert "typealias StarShipDslBuilderScope = StarShipDslBuilder.() -> Unit\n" in text
    assert "public class StarShipDslBuilder : DslBuilder<StarShip> {\n" in text
    assert "    public var name: String? = null\n" in text
    assert "    private var crewMap: Map<String, Passenger>? = null\n" in text
    assert "    protected var notes: List<String>? = null\n" in text
    assert (
        "    override fun build(): StarShip {\n"
        "        return StarShip(\n"
        "            name = vRequireNotNull(::name),\n"
        "            crewMap = vRequireMapNotEmpty(::crewMap),\n"
        "            notes = notes,\n"
        "            description = description\n"
        "        )\n"
        "    }\n"
    ) in text
    assert "    fun crewMap(block: PassengerDslBuilder.MapGroup<String>.() -> Unit) {\n" in text
    assert "        this.crewMap = PassengerDslBuilder.MapGroup<String>().apply(block).items()\n" in text


def test_render_nested_group_types(star_ship: DomainType, passenger: DomainType) -> None:
    result = generate([star_ship, passenger], OPTIONS)
    text = render_file(result.files[1])

    assert "typealias PassengerDslBuilderMapGroupScope<K> = PassengerDslBuilder.MapGroup<K>.() -> Unit\n" in text
    assert "    class Group {\n        private val items: MutableList<Passenger> = mutableListOf()\n" in text
    assert "    class MapGroup<K> {\n" in text
    assert "        fun passenger(key: K, block: PassengerDslBuilder.() -> Unit) {\n" in text
    assert "            items[key] = PassengerDslBuilder().apply(block).build()\n" in text


def test_render_root_file_with_doc(star_ship: DomainType, passenger: DomainType) -> None:
    result = generate([star_ship, passenger], OPTIONS)
    text = render_file(result.files[-1])

    assert "typealias" not in text
    assert (
        "/**\n"
        " * Builds a [StarShip] by applying [block] to a new [StarShipDslBuilder].\n"
        " */\n"
        "fun starShip(block: StarShipDslBuilder.() -> Unit): StarShip {\n"
        "    val builder = StarShipDslBuilder()\n"
        "    builder.block()\n"
        "    return builder.build()\n"
        "}\n"
    ) in text


def test_rendering_is_deterministic(star_ship: DomainType, passenger: DomainType) -> None:
    first = [render_file(f) for f in generate([star_ship, passenger], OPTIONS).files]
    second = [render_file(f) for f in generate([star_ship, passenger], OPTIONS).files]
    assert first == second


def test_write_files(tmp_path: Path) -> None:
    fn = FunctionSpecBuilder().with_name("hello").add_statement("println(%S)", "hi")
    file = FileSpecBuilder().with_class_name(ClassName.of("io.x.demo", "Hello")).add_function(fn).build()

    result = write_files([file], tmp_path)

    expected = tmp_path.resolve() / "io" / "x" / "demo" / "Hello.kt"
    assert result.rendered_files == 1
    assert result.paths == (expected,)
    assert expected.read_text(encoding="utf-8") == (
        f"{GENERATED_HEADER}\n"
        "\n"
        "package io.x.demo\n"
        "\n"
        "fun hello() {\n"
        '    println("hi")\n'
        "}\n"
    )


def test_render_non_null_lists_and_nested_accessors(
    fleet: DomainType, star_ship: DomainType, passenger: DomainType
) -> None:
    result = generate([fleet, star_ship, passenger], OPTIONS)
    text = render_file(result.files[0])

    assert "import io.violabs.core.vRequireCollectionNotEmpty\n" in text
    assert (
        "        return Fleet(\n"
        "            tags = vRequireCollectionNotEmpty(::tags),\n"
        "            crew = vRequireCollectionNotEmpty(::crew),\n"
        "            flagship = vRequireNotNull(::flagship)\n"
        "        )\n"
    ) in text
    assert (
        "    fun crew(block: PassengerDslBuilder.Group.() -> Unit) {\n"
        "        this.crew = PassengerDslBuilder.Group().apply(block).items()\n"
        "    }\n"
    ) in text
    assert (
        "    fun flagship(block: StarShipDslBuilder.() -> Unit) {\n"
        "        val builder = StarShipDslBuilder()\n"
        "        builder.block()\n"
        "        this.flagship = builder.build()\n"
        "    }\n"
    ) in text


def test_format_vararg_parameter() -> None:
    items = ParameterSpecBuilder().with_name("items").with_type(STRING).add_modifier(Modifier.VARARG).build()
    assert format_parameter(items) == "vararg items: String"
