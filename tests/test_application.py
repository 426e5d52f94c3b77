"""Tests for the root container, compose() and the command line."""

import json

import pytest

from mu_application import TTopLevelContainer, compose, load_data, main
from mu_ctrl_custom import TControlState
from mu_host import THostDocument

TEMPLATE = '<!DOCTYPE html><html><head></head><body><div id="app"></div></body></html>'


@pytest.fixture
def data_file(tmp_path):
    file = tmp_path / "page.json"
    file.write_text(json.dumps({
        "cssClass": "page",
        "title": {"controlType": "TextLabel", "text": "Hello page"},
        "list": {"controlType": "Panel", "first": {"controlType": "Item", "label": "one"}},
    }), encoding="utf-8")
    return file


class TestTopLevel:
    def test_mounts_into_body(self, top):
        assert top.is_live
        assert top.region.parent is top.document.body
        assert top._mainDiv.id == f"_mainDiv_{top._uid}"
        assert top.TopLevel is top

    def test_mounts_into_element(self, controls_dir):
        doc = THostDocument(TEMPLATE)
        top = TTopLevelContainer(path=str(controls_dir), element="app", document=doc)
        assert top.region.parent is doc.get_element_by_id("app")

    def test_missing_element(self, controls_dir, log_lines):
        top = TTopLevelContainer(path=str(controls_dir), element="nope")
        assert top.state == TControlState.INSTANTIATED
        assert any("unable to find element" in line for line in log_lines())

    def test_init_event(self, controls_dir):
        seen = []

        class Watched(TTopLevelContainer):
            def Init(self):
                seen.append(self.Name)

        Watched(path=str(controls_dir), Name="Root")
        assert seen == ["Root"]

    def test_source_path_default(self, env, controls_dir):
        top = TTopLevelContainer()
        assert top.source_path == str(controls_dir)
        assert top.resolver.source.path == controls_dir


class TestCompose:
    @pytest.mark.asyncio
    async def test_compose_builds_the_tree(self, data_file, controls_dir):
        top = await compose(load_data(data_file), str(controls_dir))
        assert top.cssClass == "page"
        assert top.title.is_live
        assert top.list.first.is_live
        html = top.document.render()
        assert "Hello page" in html
        assert "panel.css" in html

    def test_load_data_requires_object(self, tmp_path):
        file = tmp_path / "bad.json"
        file.write_text("[1, 2]", encoding="utf-8")
        with pytest.raises(ValueError):
            load_data(file)


class TestCli:
    def test_render_to_file(self, data_file, controls_dir, tmp_path):
        out = tmp_path / "page.html"
        assert main(["render", str(data_file), "--path", str(controls_dir), "--out", str(out)]) == 0
        html = out.read_text(encoding="utf-8")
        assert "Hello page" in html
        assert 'class="page"' in html

    def test_render_with_template(self, data_file, controls_dir, tmp_path, capsys):
        template = tmp_path / "index.html"
        template.write_text(TEMPLATE, encoding="utf-8")
        assert main(["render", str(data_file), "--path", str(controls_dir),
                     "--template", str(template), "--element", "app"]) == 0
        out = capsys.readouterr().out
        assert '<div id="app"><div' in out
        assert "Hello page" in out

    def test_command_required(self):
        with pytest.raises(SystemExit):
            main([])
