"""Unit tests for notification template rendering and validation."""

import pytest

from notifications.domain.rendering import render_template, validate_template
from notifications.ports.exceptions import TemplateSyntaxError


class TestRenderTemplate:
    """Tests for render_template()."""

    def test_substitutes_placeholders(self):
        result = render_template(
            "Hi {{customerName}}, order {{orderId}}",
            {"customerName": "John", "orderId": "X1"},
        )

        assert result == "Hi John, order X1"

    def test_missing_key_renders_empty(self):
        """A missing field never aborts rendering."""
        assert render_template("Hi {{customerName}}!", {}) == "Hi !"

    def test_dotted_path_walks_nested_mappings(self):
        variables = {"customer": {"address": {"city": "Lyon"}}}

        assert render_template("Ships to {{customer.address.city}}", variables) == (
            "Ships to Lyon"
        )

    def test_numeric_segment_indexes_lists(self):
        variables = {"items": [{"name": "Mug"}, {"name": "Tea"}]}

        assert render_template("{{items.1.name}}", variables) == "Tea"
        assert render_template("{{items.5.name}}", variables) == ""

    def test_whitespace_inside_braces_is_allowed(self):
        assert render_template("{{ orderId }}", {"orderId": "X1"}) == "X1"

    def test_false_section_renders_nothing(self):
        result = render_template(
            "Total{{#hasDiscount}} Saved {{amt}}{{/hasDiscount}}.",
            {"hasDiscount": False, "amt": "5"},
        )

        assert result == "Total."

    def test_true_section_renders_content(self):
        result = render_template(
            "{{#hasDiscount}}Saved {{amt}}{{/hasDiscount}}",
            {"hasDiscount": True, "amt": "5 EUR"},
        )

        assert result == "Saved 5 EUR"

    @pytest.mark.parametrize("value", [None, "", False, 0, [], {}])
    def test_falsy_section_values(self, value):
        assert render_template("{{#flag}}x{{/flag}}", {"flag": value}) == ""

    def test_missing_section_flag_is_falsy(self):
        assert render_template("a{{#flag}}x{{/flag}}b", {}) == "ab"

    def test_nested_sections(self):
        template = "{{#a}}A{{#b}}B{{/b}}{{/a}}"

        assert render_template(template, {"a": True, "b": True}) == "AB"
        assert render_template(template, {"a": True, "b": False}) == "A"
        assert render_template(template, {"a": False, "b": True}) == ""

    def test_numbers_are_stringified(self):
        result = render_template(
            "{{count}} {{price}} {{zero}}", {"count": 3, "price": 9.5, "zero": 0}
        )

        assert result == "3 9.5 0"

    def test_plain_text_is_not_html_escaped(self):
        assert render_template("{{shop}}", {"shop": "Tom & Jerry <Shop>"}) == (
            "Tom & Jerry <Shop>"
        )

    def test_html_rendering_escapes_values(self):
        result = render_template(
            "<p>{{shop}}</p>", {"shop": "Tom & Jerry <Shop>"}, escape_html=True
        )

        assert result == "<p>Tom &amp; Jerry &lt;Shop&gt;</p>"

    def test_unparseable_template_raises(self):
        with pytest.raises(TemplateSyntaxError):
            render_template("{{#flag}}hi {{name}}", {"name": "Ann"})


class TestValidateTemplate:
    """Tests for validate_template()."""

    def test_accepts_well_formed_template(self):
        validate_template("Hi {{name}}{{#vip}}, thanks for being VIP{{/vip}}")

    def test_accepts_unescaped_tags(self):
        validate_template("{{{summary}}} {{& footer}}")

    @pytest.mark.parametrize(
        "template",
        [
            "Hi {{name}",
            "Hi {{name",
            "Hi name}}",
            "Hi {{}}",
            "Hi {{first name}}",
        ],
    )
    def test_rejects_malformed_placeholders(self, template):
        with pytest.raises(TemplateSyntaxError):
            validate_template(template)

    @pytest.mark.parametrize("template", ["{{{x}}", "{{x}}}", "Code {{{x}}"])
    def test_rejects_stray_braces_next_to_tags(self, template):
        with pytest.raises(TemplateSyntaxError):
            validate_template(template)

    def test_rejects_partials(self):
        with pytest.raises(TemplateSyntaxError, match="Unsupported"):
            validate_template("{{> footer}}")

    def test_rejects_unclosed_section(self):
        with pytest.raises(TemplateSyntaxError):
            validate_template("{{#vip}}VIP")

    def test_rejects_misnested_sections(self):
        with pytest.raises(TemplateSyntaxError):
            validate_template("{{#a}}{{#b}}x{{/a}}{{/b}}")
