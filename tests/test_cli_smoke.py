import json
from pathlib import Path

from PIL import Image

from image_display import cli


def _write_config(tmp_path: Path, *, api_key: str = "", image_link: str = "file") -> Path:
    config_path = tmp_path / "config.yaml"
    config_path.write_text(
        "\n".join(
            [
                "site:",
                "  public_base_url: https://cdn.example.com/files",
                "  log_level: ERROR",
                "config:",
                "  mailchimp.settings:",
                f"    api_key: '{api_key}'",
                "image_styles:",
                "  crop_16x9:",
                "    effects:",
                "      - {id: image_scale_and_crop, width: 160, height: 90}",
                "  crop_4x3:",
                "    effects:",
                "      - {id: image_scale_and_crop, width: 80, height: 60}",
                "responsive_image_styles:",
                "  wide_banner:",
                "    label: Wide banner",
                "    fallback_image_style: crop_16x9",
                "    image_style_mappings:",
                "      - {breakpoint_id: theme.wide, image_mapping: crop_16x9}",
                "      - {breakpoint_id: theme.narrow, image_mapping: crop_4x3}",
                "  unmapped:",
                "    label: Unmapped",
                "files:",
                "  1: {uri: 'public://a.jpg'}",
                "  2: {uri: 'public://b.jpg'}",
                "formatter:",
                "  type: responsive_image",
                "  settings:",
                "    responsive_image_style: wide_banner",
                f"    image_link: '{image_link}'",
                "",
            ]
        ),
        encoding="utf-8",
    )
    return config_path


def test_cli_render_outputs_descriptors(tmp_path, capsys):
    config_path = _write_config(tmp_path)

    rc = cli.main(["--config", str(config_path), "render", "--entity", "node:3", "--files", "2,99,1"])
    assert rc == 0

    rendered = json.loads(capsys.readouterr().out)
    assert [row["target_id"] for row in rendered] == [2, 1]
    assert [row["url"] for row in rendered] == [
        "https://cdn.example.com/files/b.jpg",
        "https://cdn.example.com/files/a.jpg",
    ]
    assert rendered[0]["responsive_image_style_id"] == "wide_banner"
    assert rendered[0]["cache"]["tags"] == [
        "config:image.style.crop_16x9",
        "config:image.style.crop_4x3",
        "config:responsive_image.styles.wide_banner",
    ]


def test_cli_render_empty_field(tmp_path, capsys):
    config_path = _write_config(tmp_path)

    rc = cli.main(["--config", str(config_path), "render", "--entity", "node:new"])
    assert rc == 0
    assert json.loads(capsys.readouterr().out) == []


def test_cli_list_styles_and_summary(tmp_path, capsys):
    config_path = _write_config(tmp_path)

    assert cli.main(["--config", str(config_path), "list-styles"]) == 0
    assert capsys.readouterr().out.splitlines() == ["wide_banner\tWide banner"]

    assert cli.main(["--config", str(config_path), "summary"]) == 0
    assert capsys.readouterr().out.splitlines() == [
        "Responsive image style: Wide banner",
        "Linked to file",
    ]


def test_cli_check_access(tmp_path, capsys):
    without_key = _write_config(tmp_path)
    rc = cli.main(
        ["--config", str(without_key), "check-access", "mailchimp.lists", "--permission", "administer mailchimp"]
    )
    assert rc == 1
    assert capsys.readouterr().out.strip() == "forbidden"

    keyed_dir = tmp_path / "keyed"
    keyed_dir.mkdir()
    with_key = _write_config(keyed_dir, api_key="abc-us1")
    rc = cli.main(
        ["--config", str(with_key), "check-access", "mailchimp.lists", "--permission", "administer mailchimp"]
    )
    assert rc == 0
    assert capsys.readouterr().out.strip() == "allowed"


def test_cli_derive(tmp_path, capsys):
    config_path = _write_config(tmp_path)
    src = tmp_path / "orig.jpg"
    dest = tmp_path / "styles" / "crop_16x9" / "orig.jpg"
    Image.new("RGB", (640, 480)).save(src, format="JPEG")

    rc = cli.main(["--config", str(config_path), "derive", "crop_16x9", str(src), str(dest)])
    assert rc == 0
    assert capsys.readouterr().out.strip() == str(dest)
    with Image.open(dest) as im:
        assert im.size == (160, 90)


def test_cli_logs_config_source(tmp_path, capsys):
    config_path = _write_config(tmp_path)

    rc = cli.main(["--config", str(config_path), "--log-level", "INFO", "summary"])
    assert rc == 0

    err = capsys.readouterr().err
    assert f"Config loaded (explicit: {config_path})" in err
