"""
Tests for the RLV command parser.
"""

import pytest
from rlv_parser import (
    PARAM_ADD, PARAM_REMOVE, format_command, is_clear_line, is_command_line,
    parse_line, parse_segment,
)


class TestSegments:
    """Test single-segment grammar."""

    def test_bare_behaviour(self):
        cmd = parse_segment("detach=n", "obj")
        assert cmd.behaviour == "detach"
        assert cmd.option == ""
        assert cmd.param == PARAM_ADD
        assert cmd.issuer_id == "obj"

    def test_option_case_preserved(self):
        """Behaviour and param fold to lower case, option keeps its case."""
        cmd = parse_segment("DETACH:Left Hand=N", "obj")
        assert cmd.behaviour == "detach"
        assert cmd.option == "Left Hand"
        assert cmd.param == "n"

    def test_option_trimmed(self):
        cmd = parse_segment("getinv:  Outfits/Red  =2222", "obj")
        assert cmd.option == "Outfits/Red"
        assert cmd.param == "2222"

    def test_option_may_contain_colon(self):
        cmd = parse_segment("getstatus:a:b=1", "obj")
        assert cmd.behaviour == "getstatus"
        assert cmd.option == "a:b"

    def test_synonyms_folded(self):
        assert parse_segment("sendchat=add", "obj").param == PARAM_ADD
        assert parse_segment("sendchat=REM", "obj").param == PARAM_REMOVE

    def test_force_param(self):
        cmd = parse_segment("tpto:Region Name/10/20/30=force", "obj")
        assert cmd.is_forced
        assert cmd.option == "Region Name/10/20/30"

    @pytest.mark.parametrize("segment", [
        "detach",         # no '='
        "=n",             # empty behaviour
        "detach=",        # empty param
        "getstatus=22 22",  # param is not a bare word
        "foo:bar",
    ])
    def test_malformed_dropped(self, segment):
        assert parse_segment(segment, "obj") is None


class TestLines:
    """Test whole-line splitting."""

    def test_not_a_command_line(self):
        assert not is_command_line("hello there")
        assert parse_line("hello there", "obj") == []

    def test_order_preserved(self):
        cmds = parse_line("@detach=n,sendchat=n,tploc=y", "obj", "Collar")
        assert [c.behaviour for c in cmds] == ["detach", "sendchat", "tploc"]
        assert all(c.issuer_name == "Collar" for c in cmds)

    def test_repeated_sentinel(self):
        cmds = parse_line("@detach=n,@sendchat=n", "obj")
        assert [c.behaviour for c in cmds] == ["detach", "sendchat"]

    def test_bad_segments_skipped(self):
        cmds = parse_line("@detach,sendchat=n,=n,foo:bar,version=2222", "obj")
        assert [c.behaviour for c in cmds] == ["sendchat", "version"]

    def test_clear_line(self):
        assert is_clear_line("@clear")
        assert is_clear_line("  @Clear ".strip())
        assert parse_line("@clear", "obj") == []

    def test_clear_with_filter_is_a_command(self):
        assert not is_clear_line("@clear=sendchat")
        cmds = parse_line("@clear=sendchat", "obj")
        assert cmds[0].behaviour == "clear"
        assert cmds[0].param == "sendchat"


class TestFormatting:
    """Structural fields survive parse then format."""

    @pytest.mark.parametrize("text", [
        "detach:chest=n",
        "getinv:Outfits/Red=2222",
        "tpto:Sandbox/1/2/3=force",
        "sendchat=y",
    ])
    def test_round_trip(self, text):
        assert format_command(parse_segment(text, "obj")) == text
