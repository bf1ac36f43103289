import pytest

from crux.core import render_portfolio
from crux.core.profiler import parse_completion
from crux.core.renderer import resolve_template
from crux.errors import TemplateCompileError, TemplateNotFoundError
from crux.models import ExtractedProfile, TemplateReference
from crux.services import TemplateLibrary

from .conftest import JANE_PROFILE


@pytest.fixture
def profile() -> ExtractedProfile:
    return ExtractedProfile.model_validate(JANE_PROFILE)


class TestTemplateLibrary:
    def test_lists_manifest_templates(self, template_library):
        ids = [t["id"] for t in template_library.list_templates()]
        assert "modern-professional" in ids
        assert "classic-elegance" in ids
        assert all(t["source"] == "server" for t in template_library.list_templates())

    def test_unknown_id(self, template_library):
        with pytest.raises(TemplateNotFoundError):
            template_library.get_body("does-not-exist")

    def test_unlisted_html_files_are_served(self, tmp_path):
        (tmp_path / "minimal.html").write_text("<div>{{ personalInfo.name }}</div>")
        library = TemplateLibrary(tmp_path)

        assert library.list_templates() == [
            {"id": "minimal", "name": "Minimal", "source": "server"}
        ]
        assert library.get_body("minimal").startswith("<div>")

    def test_missing_directory_is_empty(self, tmp_path):
        assert TemplateLibrary(tmp_path / "nope").list_templates() == []


class TestResolveTemplate:
    def test_inline_body_overrides_library(self, template_library):
        ref = TemplateReference(template_id="modern-professional", body="<p>{{ x }}</p>")
        assert resolve_template(ref, template_library) == "<p>{{ x }}</p>"

    def test_blank_inline_body_uses_library(self, template_library):
        ref = TemplateReference(template_id="classic-elegance", body="   ")
        assert resolve_template(ref, template_library) == template_library.get_body("classic-elegance")


class TestRenderPortfolio:
    def test_substitution_and_loops(self, profile, template_library):
        ref = TemplateReference(
            template_id="inline",
            body=(
                "<h1>{{ personalInfo.name }}</h1>"
                "{% for job in experience %}<li>{{ job.role }} @ {{ job.company }}</li>{% endfor %}"
            ),
        )
        html = render_portfolio(profile, ref, template_library)
        assert html == "<h1>Jane Doe</h1><li>Engineer @ Acme</li>"

    def test_missing_fields_render_empty(self, template_library):
        profile = parse_completion('{"personalInfo": {"name": "Jane"}}')
        ref = TemplateReference(
            template_id="inline",
            body="[{{ personalInfo.phone }}][{{ education.first.degree }}]"
            "{% if projects %}P{% endif %}",
        )
        assert render_portfolio(profile, ref, template_library) == "[][]"

    def test_values_are_escaped(self, template_library):
        profile = ExtractedProfile.model_validate({"personalInfo": {"name": "<script>x</script>"}})
        ref = TemplateReference(template_id="inline", body="{{ personalInfo.name }}")
        assert render_portfolio(profile, ref, template_library) == "&lt;script&gt;x&lt;/script&gt;"

    def test_avatar_is_attached(self, profile, template_library):
        ref = TemplateReference(template_id="inline", body='<img src="{{ personalInfo.avatar }}">')
        html = render_portfolio(profile, ref, template_library, avatar="data:image/png;base64,AAAA")
        assert html == '<img src="data:image/png;base64,AAAA">'

    def test_invalid_syntax(self, profile, template_library):
        ref = TemplateReference(template_id="broken", body="{% for x in %}")
        with pytest.raises(TemplateCompileError) as exc_info:
            render_portfolio(profile, ref, template_library)
        assert exc_info.value.message == "Template 'broken' is invalid"

    def test_sandbox_hides_internals(self, profile, template_library):
        ref = TemplateReference(template_id="evil", body="[{{ personalInfo.__class__ }}]")
        assert render_portfolio(profile, ref, template_library) == "[]"

    def test_unknown_template(self, profile, template_library):
        with pytest.raises(TemplateNotFoundError):
            render_portfolio(profile, TemplateReference(template_id="nope"), template_library)

    @pytest.mark.parametrize("template_id", ["modern-professional", "classic-elegance"])
    def test_server_templates_render_flat_skills(self, template_library, template_id):
        profile = parse_completion('{"personalInfo": {"name": "Jane Doe"}, "skills": ["Python", "Go"]}')
        html = render_portfolio(profile, TemplateReference(template_id=template_id), template_library)
        assert "Python, Go" in html

    @pytest.mark.parametrize("template_id", ["modern-professional", "classic-elegance"])
    def test_server_templates_render(self, profile, template_library, template_id):
        html = render_portfolio(profile, TemplateReference(template_id=template_id), template_library)
        assert "Jane Doe" in html
        assert "Acme" in html
        assert "<body" in html


class TestRestrictedEvaluation:
    def _render(self, profile, library, body):
        return render_portfolio(profile, TemplateReference(template_id="inline", body=body), library)

    @pytest.mark.parametrize("body", [
        "<div>{{ 'a' * 300000000 }}</div>",
        "<div>{{ 2 ** 100000000 }}</div>",
        "<div>{{ '%300000000s' % 'a' }}</div>",
        "<div>{{ '{:>300000000}'.format('a') }}</div>",
        "<div>{{ personalInfo.name.upper() }}</div>",
        "<div>{{ lipsum(100000) }}</div>",
        "{% for i in range(100000000) %}x{% endfor %}",
    ])
    def test_runaway_expressions_are_refused(self, profile, template_library, body):
        with pytest.raises(TemplateCompileError) as exc_info:
            self._render(profile, template_library, body)
        assert exc_info.value.status_code == 500

    @pytest.mark.parametrize("body", [
        "<div>{{ 'a' | center(300000000) }}</div>",
        "<div>{{ personalInfo.name | safe }}</div>",
    ])
    def test_unlisted_filters_are_invalid(self, profile, template_library, body):
        with pytest.raises(TemplateCompileError) as exc_info:
            self._render(profile, template_library, body)
        assert exc_info.value.message == "Template 'inline' is invalid"

    def test_number_arithmetic_and_dict_methods(self, profile, template_library):
        body = (
            "{% for job in experience %}{{ loop.index * 2 + 1 }}{{ loop.index % 2 }}{% endfor %}"
            "{% for key, value in personalInfo.items() %}{% if key == 'title' %}{{ value | upper }}{% endif %}{% endfor %}"
        )
        assert self._render(profile, template_library, body) == "31ENGINEER"

    def test_output_is_capped(self, template_library, monkeypatch):
        monkeypatch.setattr("crux.core.renderer.MAX_RENDER_CHARS", 50)
        profile = ExtractedProfile.model_validate({"achievements": ["x" * 20] * 5})
        body = "{% for item in achievements %}<p>{{ item }}</p>{% endfor %}"

        with pytest.raises(TemplateCompileError) as exc_info:
            self._render(profile, template_library, body)
        assert exc_info.value.message == "Template 'inline' output is too large"
