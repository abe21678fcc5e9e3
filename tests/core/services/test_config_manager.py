import yaml

from ast_outline.config import ConfigManager


def test_defaults_are_copied_to_the_user_directory(isolated_config):
    manager = ConfigManager()
    assert manager.user_config_dir == isolated_config
    assert (isolated_config / "viewer_settings.yml").exists()
    assert (isolated_config / "logging.yml").exists()
    assert manager.get_viewer_settings()["max_render_nodes"] == 5000


def test_instance_is_shared():
    assert ConfigManager() is ConfigManager()


def test_user_overrides_merge_over_packaged_defaults(isolated_config):
    isolated_config.mkdir(parents=True)
    (isolated_config / "viewer_settings.yml").write_text("max_render_nodes: 900\n", encoding="utf-8")

    settings = ConfigManager().get_viewer_settings()
    assert settings["max_render_nodes"] == 900
    assert settings["lazy_load_depth"] == 3


def test_broken_user_files_are_ignored(isolated_config):
    isolated_config.mkdir(parents=True)
    (isolated_config / "viewer_settings.yml").write_text("max_render_nodes: [unclosed\n", encoding="utf-8")
    (isolated_config / "logging.yml").write_text("- just\n- a list\n", encoding="utf-8")

    manager = ConfigManager()
    assert manager.get_viewer_settings()["max_render_nodes"] == 5000
    assert manager.get_logging_config()["version"] == 1


def test_save_section_and_reload(isolated_config):
    manager = ConfigManager()
    path = manager.save_section("viewer_settings", {"max_render_nodes": 700})
    assert yaml.safe_load(path.read_text(encoding="utf-8")) == {"max_render_nodes": 700}
    assert manager.get_viewer_settings()["max_render_nodes"] == 700

    path.write_text("max_render_nodes: 650\n", encoding="utf-8")
    manager.reload()
    assert manager.get_viewer_settings()["max_render_nodes"] == 650


def test_logging_config_is_a_copy():
    manager = ConfigManager()
    config = manager.get_logging_config()
    config["handlers"]["file"]["filename"] = "elsewhere.log"
    assert manager.get_logging_config()["handlers"]["file"]["filename"] == "logs/app.log"
    assert manager.get_packaged_defaults("viewer_settings")["lazy_load_threshold"] == 1000
