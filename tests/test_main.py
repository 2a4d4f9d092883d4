import pytest

from azan.main import build_parser


def test_parse_refresh_force():
    args = build_parser().parse_args(["--config", "c.yaml", "refresh", "--force"])
    assert args.command == "refresh"
    assert args.force is True
    assert args.config == "c.yaml"


def test_parse_set_location():
    args = build_parser().parse_args(["set-location", "48.85", "2.35", "--country", "France"])
    assert (args.latitude, args.longitude, args.country) == (48.85, 2.35, "France")


def test_command_is_required():
    with pytest.raises(SystemExit):
        build_parser().parse_args([])
