"""
Unit tests for the SIGL statement dispatcher.
"""

import pytest

from sigl import (
    parse,
    Parser,
    ParserOptions,
    FatalParseError,
    CatalogVocabulary,
    Record,
    Scalar,
    clear_cache,
)
from sigl.vocabulary import SIGL_VOCABULARY_DATA


def entities(result):
    return list(result.scene.entities)


def codes(diagnostics):
    return [d.code for d in diagnostics]


class TestBasicScenes:
    """Test whole documents."""

    def test_empty_input(self):
        """Empty input is a successful, empty scene."""
        result = parse("")
        assert result.success
        assert entities(result) == []

    def test_comments_only(self):
        """Comments and blank lines alone are an empty scene."""
        result = parse("// nothing here\n\n   // still nothing\n")
        assert result.success
        assert entities(result) == []
        assert result.diagnostics.diagnostics == []

    def test_family_scene(self):
        """Absolute and relative placement with attributes."""
        result = parse(
            "DRAW MAN WITH AGE 35 AND BLUE SHIRT AT LEFT\n"
            "DRAW WOMAN WITH AGE 32 AND RED DRESS NEXT TO MAN"
        )
        assert result.success
        man, woman = entities(result)

        assert (man.position.x, man.position.y, man.position.z) == (150, 300, 0)
        assert man.attributes["age"] == Scalar(35)
        assert man.attributes["clothing"]["shirt"] == Scalar("#0000FF")

        assert (woman.position.x, woman.position.y, woman.position.z) == (300, 300, 0)
        assert woman.position.relative is None
        assert woman.position.relative_to is None
        assert woman.attributes["age"] == Scalar(32)
        assert woman.attributes["clothing"]["dress"] == Scalar("#FF0000")

    def test_unresolved_target_is_warning(self):
        """A missing relative target warns but does not fail."""
        result = parse("DRAW TREE BEHIND HOUSE")
        assert result.success
        (tree,) = entities(result)
        assert (tree.position.x, tree.position.y, tree.position.z) == (400, 300, 0)
        assert codes(result.warnings) == ["W101"]
        assert result.warnings[0].line == 1

    def test_parameterized_attribute(self):
        """NAME(key: value) attributes become records."""
        result = parse("DRAW MAN WITH HAIR(COLOR: BROWN, STYLE: SHORT)")
        (man,) = entities(result)
        assert isinstance(man.attributes["hair"], Record)
        assert man.plain_attributes()["hair"] == {"color": "#8B4513", "style": "SHORT"}

    def test_case_insensitive_keywords(self):
        """Statements and keywords are case-insensitive."""
        result = parse("draw woman with red dress at right")
        assert result.success
        (woman,) = entities(result)
        assert woman.subtype == "adult_female"
        assert (woman.position.x, woman.position.y) == (650, 300)

    def test_default_position(self):
        """An entity without a position clause sits at the canvas center."""
        (man,) = entities(parse("DRAW MAN"))
        assert (man.position.x, man.position.y, man.position.z) == (400, 300, 0)

    def test_ids_sequential(self):
        """Entity ids count up from entity_1."""
        result = parse("DRAW MAN\nDRAW WOMAN\nDRAW TREE")
        assert [e.id for e in entities(result)] == ["entity_1", "entity_2", "entity_3"]

    def test_reparse_is_identical(self):
        """Parsing the same text twice gives the same scene."""
        source = (
            "LOAD EXTENSION hospital\n"
            "ADD ENVIRONMENT hospital\n"
            "DRAW DOCTOR WITH GLASSES AT CENTER\n"
            "DRAW PATIENT LEFT OF DOCTOR WITH DISTANCE 90\n"
        )
        parser = Parser()
        first = parser.parse(source)
        second = parser.parse(source)
        assert first.scene.to_json() == second.scene.to_json()
        assert [e.id for e in second.scene.entities] == ["entity_1", "entity_2"]


class TestDraw:
    """Test DRAW statements."""

    def test_defaults_under_attributes(self):
        """Parsed attributes override subtype defaults."""
        (man,) = entities(parse("DRAW MAN WITH AGE 50"))
        assert man.plain_attributes() == {"age": 50, "gender": "male"}

    def test_unknown_keyword_is_person(self):
        """Unknown keywords become generic people."""
        result = parse("DRAW ROBOT WITH HAPPY FACE")
        assert result.success
        (robot,) = entities(result)
        assert (robot.category, robot.subtype) == ("human", "person")
        assert robot.plain_attributes() == {"age": 25, "emotion": "happy"}

    def test_animal(self):
        """DRAW ANIMAL <kind> makes an animal object."""
        (dog,) = entities(parse("DRAW ANIMAL DOG NEAR TREE"))
        assert (dog.category, dog.subtype) == ("object", "animal_dog")

    def test_animal_relative_target(self):
        """Animals can be targets by their keyword."""
        result = parse("DRAW ANIMAL CAT AT LEFT\nDRAW BOY NEXT TO ANIMAL_CAT")
        cat, boy = entities(result)
        assert boy.position.x == cat.position.x + 150

    def test_extension_role_defaults(self):
        """Extension keywords carry their role."""
        result = parse("LOAD EXTENSION educational\nDRAW TEACHER WITH AGE 41")
        (teacher,) = entities(result)
        assert teacher.plain_attributes() == {"age": 41, "gender": "neutral", "role": "teacher"}

    def test_without_section(self):
        """DRAW X WITHOUT Y needs no WITH."""
        (man,) = entities(parse("DRAW MAN WITHOUT SHIRT AT LEFT"))
        assert man.attributes["no_shirt"] == Scalar(True)
        assert man.position.x == 150

    def test_position_directly_after_keyword(self):
        """A position clause may follow the keyword."""
        (car,) = entities(parse("DRAW CAR AT BOTTOM_RIGHT"))
        assert (car.position.x, car.position.y) == (650, 500)

    def test_coordinates_with_attributes(self):
        """Attributes stop where the position clause begins."""
        (ball,) = entities(parse("DRAW BALL WITH SIZE SMALL AT (120, 80)"))
        assert ball.plain_attributes()["size"] == "small"
        assert (ball.position.x, ball.position.y) == (120, 80)

    def test_distance(self):
        """WITH DISTANCE does not change the resolved offset."""
        result = parse("DRAW HOUSE AT CENTER\nDRAW TREE LEFT OF HOUSE WITH DISTANCE 60")
        house, tree = entities(result)
        assert (tree.position.x, tree.position.y) == (250, 300)

    def test_distance_next_to_alias(self):
        """A distance on NEXT TO still uses the fixed offset from the target."""
        result = parse("DRAW MAN AT LEFT\nDRAW WOMAN NEXT TO MAN WITH DISTANCE 40")
        man, woman = entities(result)
        assert (woman.position.x, woman.position.y) == (300, 300)

    def test_alias_targets_first_of_subtype(self):
        """WOMAN names the first adult female."""
        result = parse(
            "DRAW WOMAN AT LEFT\n"
            "DRAW WOMAN AT RIGHT\n"
            "DRAW GIRL BELOW WOMAN\n"
        )
        first, _, girl = entities(result)
        assert (girl.position.x, girl.position.y) == (first.position.x, first.position.y + 150)

    def test_target_by_id(self):
        """Entities can be targeted by id."""
        result = parse("DRAW TREE AT TOP\nDRAW TREE AT BOTTOM\nDRAW BOOK ABOVE entity_2")
        _, second, book = entities(result)
        assert (book.position.x, book.position.y) == (400, 350)

    def test_unknown_at_position_warns(self):
        """AT an unknown name warns and centers."""
        result = parse("DRAW MAN AT NOWHERE")
        assert result.success
        assert codes(result.warnings) == ["W105"]

    @pytest.mark.parametrize("source", ["DRAW", "DRAW 42", "DRAW (1, 2)"])
    def test_missing_entity(self, source):
        """DRAW needs a word after it."""
        result = parse(source)
        assert not result.success
        assert codes(result.errors) == ["E102"]

    def test_clause_without_entity(self):
        """A clause right after DRAW draws a generic person."""
        result = parse("DRAW WITH AGE 30\nDRAW AT LEFT\nDRAW TREE AT RIGHT\nDRAW NEAR TREE")
        assert result.success
        aged, placed, tree, near = entities(result)
        assert (aged.category, aged.subtype) == ("human", "person")
        assert aged.plain_attributes()["age"] == 30
        assert placed.subtype == "person"
        assert (placed.position.x, placed.position.y) == (150, 300)
        assert near.subtype == "person"
        assert (near.position.x, near.position.y) == (tree.position.x + 80, tree.position.y + 80)

    def test_relation_without_target(self):
        """A dangling relation is an error."""
        result = parse("DRAW MAN NEXT TO")
        assert codes(result.errors) == ["E107"]
        assert entities(result) == []


class TestFailSoft:
    """Test that one bad statement does not stop the parse."""

    def test_unknown_statement(self):
        """Unknown statements are errors that name their line."""
        result = parse("DRAW MAN\nJUMP AROUND\nDRAW WOMAN\nDRAW TREE")
        assert not result.success
        assert len(entities(result)) == 3
        assert codes(result.errors) == ["E101"]
        assert result.errors[0].line == 2

    def test_resolution_skipped_after_error(self):
        """Relative positions stay pending when the parse failed."""
        result = parse("DRAW MAN AT LEFT\nFLY AWAY\nDRAW WOMAN NEXT TO MAN")
        assert not result.success
        woman = entities(result)[1]
        assert woman.position.relative_to == "MAN"

    def test_lexer_error_isolated(self):
        """An unterminated string only fails its own statement."""
        result = parse('DRAW MAN WITH TAG(TEXT: "oops)\nDRAW WOMAN')
        assert codes(result.errors) == ["E002"]
        assert [e.subtype for e in entities(result)] == ["adult_female"]

    def test_non_ascii_digits(self):
        """Superscript digits never abort the document."""
        result = parse("DRAW MAN WITH AGE ²\nDRAW WOMAN")
        assert result.success
        man, woman = entities(result)
        assert man.plain_attributes()["age"] == 30
        assert woman.subtype == "adult_female"

    def test_form_feed_keeps_line_numbers(self):
        """A form feed inside a line neither splits it nor shifts later lines."""
        result = parse("DRAW MAN\x0cDRAW WOMAN\nBOGUS")
        assert len(entities(result)) == 1
        assert codes(result.errors) == ["E101"]
        assert result.errors[0].line == 2

    def test_several_errors_collected(self):
        """Every bad statement is reported."""
        result = parse("HELLO\nDRAW MAN\nLOAD EXTENSION\nADD ENVIRONMENT\nEXPORT PNG")
        assert codes(result.errors) == ["E101", "E103", "E104", "E106"]
        assert [d.line for d in result.errors] == [1, 3, 4, 5]
        assert len(entities(result)) == 1

    def test_scene_frozen(self):
        """The returned scene is read-only."""
        result = parse("DRAW MAN WITH AGE 30")
        assert result.scene.frozen
        with pytest.raises(TypeError):
            result.scene.entities[0].attributes["age"] = Scalar(31)
        with pytest.raises(RuntimeError):
            result.scene.add_entity(result.scene.entities[0])


class TestExtensionsAndEnvironments:
    """Test LOAD EXTENSION and ADD ENVIRONMENT."""

    def test_load_extension_recorded(self):
        """Loaded extensions are recorded lower-cased."""
        result = parse("LOAD EXTENSION Educational\nLOAD EXTENSION educational")
        assert result.extensions == frozenset({"educational"})
        assert result.scene.metadata.extensions == ["educational"]
        assert result.diagnostics.diagnostics == []

    def test_unknown_extension_warns(self):
        """Unknown extension names warn."""
        result = parse("LOAD EXTENSION wizardry")
        assert result.success
        assert codes(result.warnings) == ["W102"]
        assert "wizardry" in result.extensions

    def test_environment_preset(self):
        """Known environments set background and lighting."""
        result = parse("ADD ENVIRONMENT Office")
        environment = result.scene.environment
        assert environment.type == "office"
        assert environment.background == {"type": "solid", "color": "#F5F5F5"}
        assert environment.lighting == {"ambient": 0.8}

    def test_extension_environment_overrides_core(self):
        """A loaded extension's environment wins over the core one."""
        core = parse("ADD ENVIRONMENT hospital").scene.environment
        loaded = parse("LOAD EXTENSION hospital\nADD ENVIRONMENT hospital").scene.environment
        assert core.background["color"] == "#E8F4F8"
        assert loaded.background["color"] == "#F0F8FF"
        assert loaded.lighting["ambient"] == 0.95

    def test_unknown_environment(self):
        """Unknown environments only set the type."""
        environment = parse("ADD ENVIRONMENT moon").scene.environment
        assert environment.type == "moon"
        assert environment.background == {"type": "solid", "color": "#ffffff"}

    def test_strict_extensions(self):
        """Strict mode ignores extension keywords until loaded."""
        options = ParserOptions(strict_extensions=True)
        before = parse("DRAW NURSE", options=options)
        after = parse("LOAD EXTENSION hospital\nDRAW NURSE", options=options)
        assert entities(before)[0].subtype == "person"
        assert entities(after)[0].subtype == "nurse"

    def test_lenient_extensions_by_default(self):
        """Without strict mode extension keywords always work."""
        (soldier,) = entities(parse("DRAW SOLDIER"))
        assert soldier.subtype == "soldier"


class TestUpdate:
    """Test UPDATE statements."""

    def test_update_by_id(self):
        """UPDATE <id> merges attributes."""
        result = parse("DRAW MAN WITH AGE 30\nUPDATE entity_1 WITH AGE 31 AND BEARD")
        (man,) = entities(result)
        assert man.plain_attributes() == {"age": 31, "gender": "male", "beard": True}

    def test_update_by_subtype(self):
        """UPDATE <subtype> finds the first entity of that subtype."""
        result = parse("DRAW GIRL\nDRAW GIRL\nUPDATE child_female WITH HAPPY FACE")
        first, second = entities(result)
        assert first.attributes["emotion"] == Scalar("happy")
        assert "emotion" not in second.attributes

    def test_update_by_keyword(self):
        """UPDATE <keyword> finds the first entity drawn with it."""
        result = parse("DRAW TREE\nDRAW MAN\nUPDATE MAN WITH GREEN SHIRT")
        _, man = entities(result)
        assert man.plain_attributes()["clothing"] == {"shirt": "#00FF00"}

    def test_update_replaces_top_level(self):
        """Records are replaced, not merged."""
        result = parse("DRAW MAN WITH RED SHIRT\nUPDATE MAN WITH BLUE PANTS")
        (man,) = entities(result)
        assert man.plain_attributes()["clothing"] == {"pants": "#0000FF"}

    def test_update_missing_target(self):
        """Updating nothing warns."""
        result = parse("DRAW MAN\nUPDATE WOMAN WITH AGE 20")
        assert result.success
        assert codes(result.warnings) == ["W103"]
        assert entities(result)[0].attributes["age"] == Scalar(30)

    def test_update_without_with(self):
        """UPDATE needs WITH."""
        result = parse("DRAW MAN\nUPDATE MAN AGE 20")
        assert codes(result.errors) == ["E105"]

    def test_update_without_attributes(self):
        """UPDATE ... WITH needs attributes."""
        result = parse("DRAW MAN\nUPDATE MAN WITH")
        assert codes(result.errors) == ["E105"]


class TestExport:
    """Test EXPORT statements."""

    def test_format_only(self):
        """EXPORT AS records the format with default quality."""
        options = parse("EXPORT AS PNG").scene.metadata.export_options
        assert options.format == "png"
        assert options.quality == "medium"
        assert options.resolution is None

    def test_all_options(self):
        """Resolution, quality and DPI are recorded."""
        result = parse("EXPORT AS jpeg WITH RESOLUTION: 1280x720 AND QUALITY: HIGH AND DPI: 300")
        assert result.success
        options = result.scene.metadata.export_options
        assert options.format == "jpeg"
        assert options.resolution == {"width": 1280, "height": 720}
        assert options.quality == "high"
        assert options.dpi == 300

    @pytest.mark.parametrize("preset,size", [
        ("THUMBNAIL", (150, 150)),
        ("HD", (1920, 1080)),
        ("FULL_HD", (1920, 1080)),
        ("4K", (3840, 2160)),
    ])
    def test_resolution_presets(self, preset, size):
        """Named resolutions expand to sizes."""
        options = parse(f"EXPORT AS PNG WITH RESOLUTION: {preset}").scene.metadata.export_options
        assert (options.width, options.height) == size

    def test_numeric_quality(self):
        """Quality may be a number."""
        options = parse("EXPORT AS WEBP WITH QUALITY: 85").scene.metadata.export_options
        assert options.quality == 85

    def test_unknown_format(self):
        """Unsupported formats are errors."""
        result = parse("EXPORT AS BMP")
        assert codes(result.errors) == ["E106"]
        assert result.scene.metadata.export_options is None

    def test_unknown_option_warns(self):
        """Unknown option keys warn and are skipped."""
        result = parse("EXPORT AS SVG WITH COMPRESSION: MAX AND DPI: 72")
        assert result.success
        assert codes(result.warnings) == ["W104"]
        assert result.scene.metadata.export_options.dpi == 72

    @pytest.mark.parametrize("source", [
        "EXPORT AS PNG WITH TRANSPARENT DPI: 300",
        "EXPORT AS PNG WITH TRANSPARENT AND DPI: 300",
        "EXPORT AS PNG WITH DPI: 300, TRANSPARENT",
        "EXPORT AS PNG WITH TRANSPARENT BACKGROUND: WHITE DPI: 300",
    ])
    def test_unknown_flag_without_value(self, source):
        """An unknown key with no value does not swallow the next option."""
        result = parse(source)
        assert result.success
        assert "W104" in codes(result.warnings)
        assert result.scene.metadata.export_options.dpi == 300

    def test_bad_resolution(self):
        """Resolution values must be WxH or a preset."""
        result = parse("EXPORT AS PDF WITH RESOLUTION: HUGE")
        assert codes(result.errors) == ["E106"]

    def test_scene_json(self):
        """Export options appear in the scene JSON."""
        data = parse("EXPORT AS GIF WITH RESOLUTION: HD").scene.to_json()
        assert data["metadata"]["exportOptions"] == {
            "format": "gif",
            "quality": "medium",
            "resolution": {"width": 1920, "height": 1080},
        }


class TestVocabularyInjection:
    """Test parsers built on custom vocabularies."""

    def test_custom_vocabulary(self):
        """A Parser uses the vocabulary it is given."""
        vocabulary = CatalogVocabulary([{
            "name": "core",
            "entities": {"ROCKET": {"category": "object", "subtype": "rocket"}},
            "defaults": {"rocket": {"stages": 2}},
            "environments": {"space": {"background": {"type": "solid", "color": "#000000"}}},
        }])
        result = Parser(vocabulary).parse("ADD ENVIRONMENT space\nDRAW ROCKET\nDRAW MAN")
        rocket, man = entities(result)
        assert rocket.plain_attributes() == {"stages": 2}
        assert man.subtype == "person"
        assert result.scene.environment.background["color"] == "#000000"

    def test_missing_vocabulary_is_fatal(self, tmp_path, monkeypatch):
        """A malformed core catalog aborts the parse."""
        (tmp_path / "core.yaml").write_text("- not\n- a\n- mapping\n")
        monkeypatch.setenv(SIGL_VOCABULARY_DATA, str(tmp_path))
        clear_cache()
        try:
            with pytest.raises(FatalParseError) as exc_info:
                Parser().parse("DRAW MAN")
            assert exc_info.value.diagnostic.code == "F001"
        finally:
            clear_cache()
