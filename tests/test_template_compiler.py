"""
rqserve — Template Compiler Unit Tests
========================================

What:  Tests metadata parsing, route path derivation and parameter inference.
How:   Templates are written to a temporary tree and compiled from disk.
"""

import pytest

from rqserve.exceptions import MalformedMetadataError
from rqserve.services.template_compiler import (
    compile_template,
    extract_placeholders,
    normalize_to_mapping,
    split_placeholder,
    split_template,
)


def params_by_name(route):
    return {p.param_name: p for p in route.parameters}


class TestMetadataBlock:
    """Leading comment lines → metadata; everything from the first other line → query."""

    def test_no_comment_lines_uses_defaults(self, template_dir, write_template):
        path = write_template("plain.rq", "SELECT * WHERE { ?s ?p ?o }\n")
        route = compile_template(path, template_dir)

        assert route.method == "GET"
        assert route.summary == ""
        assert route.description == ""
        assert route.tags == ()
        assert route.pagination_size is None
        assert route.endpoint_override is None
        assert route.endpoint_selectable_by_caller is True
        assert route.query_body == "SELECT * WHERE { ?s ?p ?o }\n"

    def test_recognized_keys(self, template_dir, write_template):
        path = write_template(
            "q.rq",
            "#+ summary: All the things\n"
            "#+ description: Long text\n"
            "#+ method: post\n"
            "#+ pagination: 10\n"
            "#+ endpoint: http://example.org/sparql\n"
            "#+ endpoint_in_url: false\n"
            "#+ tags:\n"
            "#+   - things\n"
            "#+   - stuff\n"
            "SELECT ?x WHERE { ?x ?p ?o }\n",
        )
        route = compile_template(path, template_dir)

        assert route.summary == "All the things"
        assert route.description == "Long text"
        assert route.method == "POST"
        assert route.pagination_size == 10
        assert route.endpoint_override == "http://example.org/sparql"
        assert route.endpoint_selectable_by_caller is False
        assert route.tags == ("things", "stuff")
        assert route.query_body == "SELECT ?x WHERE { ?x ?p ?o }\n"

    def test_plain_hash_prefix_is_accepted(self, template_dir, write_template):
        path = write_template("q.rq", "# summary: Hello\n# tags:\n#   - a\nASK {}\n")
        route = compile_template(path, template_dir)

        assert route.summary == "Hello"
        assert route.tags == ("a",)

    def test_byte_order_mark_does_not_hide_metadata(self, template_dir):
        path = template_dir / "bom.rq"
        path.write_bytes("#+ summary: Hello\nASK {}\n".encode("utf-8-sig"))
        route = compile_template(path, template_dir)

        assert route.summary == "Hello"
        assert route.query_body == "ASK {}\n"

    def test_extra_marker_spaces_are_yaml_indentation(self, template_dir, write_template):
        path = write_template("q.rq", "#summary: a\n#  tags: [x]\nASK {}\n")
        with pytest.raises(MalformedMetadataError):
            compile_template(path, template_dir)

    def test_single_tag_string_becomes_sequence(self, template_dir, write_template):
        path = write_template("q.rq", "#+ tags: people\nASK {}\n")
        assert compile_template(path, template_dir).tags == ("people",)

    def test_duplicate_tags_collapse_in_order(self, template_dir, write_template):
        path = write_template("q.rq", "#+ tags: [b, a, b]\nASK {}\n")
        assert compile_template(path, template_dir).tags == ("b", "a")

    def test_comment_after_query_line_is_not_metadata(self, template_dir, write_template):
        path = write_template("q.rq", "SELECT ?x WHERE { ?x ?p ?o }\n# summary: too late\n")
        route = compile_template(path, template_dir)

        assert route.summary == ""
        assert "# summary: too late" in route.query_body

    def test_blank_line_ends_metadata(self):
        metadata, query = split_template(["# a: 1\n", "\n", "# b: 2\n", "ASK {}\n"])
        assert metadata == ["# a: 1\n"]
        assert query == ["\n", "# b: 2\n", "ASK {}\n"]

    def test_invalid_yaml_raises(self, template_dir, write_template):
        path = write_template("broken.rq", "#+ summary: [unclosed\nASK {}\n")
        with pytest.raises(MalformedMetadataError, match="broken.rq"):
            compile_template(path, template_dir)

    def test_free_text_comment_yields_empty_metadata(self, template_dir, write_template):
        path = write_template("q.rq", "# Finds every person\nSELECT ?p WHERE { ?p a ?t }\n")
        route = compile_template(path, template_dir)

        assert route.summary == ""
        assert route.method == "GET"

    def test_unsupported_method_raises(self, template_dir, write_template):
        path = write_template("q.rq", "#+ method: FETCH\nASK {}\n")
        with pytest.raises(MalformedMetadataError, match="unsupported method"):
            compile_template(path, template_dir)

    def test_non_integer_pagination_raises(self, template_dir, write_template):
        path = write_template("q.rq", "#+ pagination: ten\nASK {}\n")
        with pytest.raises(MalformedMetadataError, match="pagination"):
            compile_template(path, template_dir)

    def test_non_positive_pagination_disables_paging(self, template_dir, write_template):
        path = write_template("q.rq", "#+ pagination: 0\nASK {}\n")
        assert compile_template(path, template_dir).pagination_size is None


class TestNormalizeToMapping:
    def test_mapping_is_used_as_is(self):
        assert normalize_to_mapping({"lang": ["en"], "n": 1}) == {"lang": ["en"], "n": 1}

    def test_list_of_single_entry_mappings_is_merged(self):
        merged = normalize_to_mapping([{"lang": ["en"]}, {"n": 1}, {"lang": ["fr"]}])
        assert merged == {"lang": ["fr"], "n": 1}

    def test_non_mapping_items_are_skipped(self):
        assert normalize_to_mapping([{"a": 1}, "junk", 3]) == {"a": 1}

    @pytest.mark.parametrize("value", [None, "text", 42, ["a", "b"]])
    def test_other_shapes_yield_empty_mapping(self, value):
        assert normalize_to_mapping(value) == {}


class TestRoutePath:
    def test_nested_path_without_extension(self, template_dir, write_template):
        path = write_template("people/by_name.rq", "ASK {}\n")
        route = compile_template(path, template_dir)

        assert route.route_path == "/people/by_name"
        assert route.relative_path == "people/by_name"
        assert route.template_name == "people/by_name.rq"

    def test_string_paths_are_accepted(self, template_dir, write_template):
        path = write_template("top.rq", "ASK {}\n")
        assert compile_template(str(path), str(template_dir)).route_path == "/top"


class TestParameters:
    """Placeholder → ParameterSpec inference."""

    def test_placeholders_unique_in_first_seen_order(self):
        text = "SELECT ?b ?a WHERE { ?a ?p ?b . ?c ?p ?a }"
        assert extract_placeholders(text) == ["b", "a", "p", "c"]

    def test_optional_integer(self):
        assert split_placeholder("limit_optional_integer") == ("limit", "integer", False)

    def test_suffixed_required(self):
        assert split_placeholder("name_literal") == ("name", "literal", True)

    def test_bare_token(self):
        assert split_placeholder("name") == ("name", "", True)

    def test_optional_marker_without_suffix(self):
        assert split_placeholder("x_optional_") == ("x", "", False)

    def test_token_without_name_keeps_whole_token(self):
        assert split_placeholder("_integer") == ("_integer", "", True)

    def test_inferred_types(self, template_dir, write_template):
        path = write_template(
            "q.rq",
            "SELECT * WHERE {\n"
            "  ?thing_iri ?p ?o .\n"
            "  FILTER(?o > ?min_optional_integer && ?o < ?max_double)\n"
            "  FILTER(?when_dateTime != ?day_date && ?flag_boolean)\n"
            "  FILTER(?first_name = ?o)\n"
            "}\n",
        )
        params = params_by_name(compile_template(path, template_dir))

        assert (params["thing"].value_type, params["thing"].format) == ("string", "uri")
        assert params["thing"].required is True
        assert (params["min"].value_type, params["min"].required) == ("integer", False)
        assert params["max"].value_type == "number"
        assert (params["when"].value_type, params["when"].format) == ("string", "date-time")
        assert (params["day"].value_type, params["day"].format) == ("string", "date")
        assert params["flag"].value_type == "boolean"
        # "name" is not a known suffix: still a suffix, typed as plain string
        assert (params["first"].value_type, params["first"].format) == ("string", None)
        assert params["first"].placeholder == "first_name"

    def test_unrecognized_suffix_is_required_string(self, template_dir, write_template):
        path = write_template("q.rq", "SELECT ?x WHERE { ?x ?p ?term }\n")
        spec = params_by_name(compile_template(path, template_dir))["term"]

        assert spec.required is True
        assert spec.value_type == "string"
        assert spec.format is None
        assert spec.enum is None
        assert spec.default is None

    def test_duplicate_placeholders_collapse(self, template_dir, write_template):
        path = write_template("q.rq", "SELECT ?x WHERE { ?x ?p ?x . ?x ?q ?x }\n")
        route = compile_template(path, template_dir)
        assert [p.placeholder for p in route.parameters] == ["x", "p", "q"]

    def test_suffixed_placeholder_wins_name_collision(self, template_dir, write_template):
        path = write_template("q.rq", "SELECT ?name WHERE { ?s <urn:hasName> ?name_literal }")
        route = compile_template(path, template_dir)
        params = params_by_name(route)

        assert [p.param_name for p in route.parameters] == ["s", "name"]
        assert params["name"].placeholder == "name_literal"
        assert params["name"].required is True
        assert params["name"].value_type == "string"

    def test_first_suffixed_placeholder_wins_between_suffixed(self, template_dir, write_template):
        path = write_template("q.rq", "SELECT * WHERE { ?s ?p ?v_integer . ?s ?q ?v_literal }\n")
        params = params_by_name(compile_template(path, template_dir))
        assert params["v"].placeholder == "v_integer"

    def test_enumerations_and_defaults_attach_by_name(self, template_dir, write_template):
        path = write_template(
            "q.rq",
            "#+ enumerate:\n"
            "#+   - lang:\n"
            "#+     - en\n"
            "#+     - fr\n"
            "#+ defaults:\n"
            "#+   lang: en\n"
            "#+   limit: 10\n"
            "SELECT ?l WHERE { ?s ?p ?l FILTER(LANG(?l) = ?lang_optional_literal) } LIMIT ?limit_optional_integer\n",
        )
        params = params_by_name(compile_template(path, template_dir))

        assert params["lang"].enum == ("en", "fr")
        assert params["lang"].default == "en"
        assert params["limit"].default == 10
        assert params["limit"].enum is None

    def test_compiling_twice_is_identical(self, template_dir, write_template):
        path = write_template("q.rq", "#+ tags: [a]\nSELECT ?x WHERE { ?x ?p ?y_optional_integer }\n")
        assert compile_template(path, template_dir) == compile_template(path, template_dir)
