"""Tests for the Rich Console factory and theme."""

from io import StringIO

from transmute.output.console import TRANSMUTE_THEME, create_console, get_output


class TestCreateConsole:
    def test_returns_console_with_stringio(self) -> None:
        assert isinstance(create_console().file, StringIO)

    def test_no_color_disables_ansi(self) -> None:
        console = create_console(no_color=True)
        console.print("[tm.error]hello[/tm.error]")
        output = get_output(console)
        assert "\x1b" not in output
        assert "hello" in output

    def test_custom_width(self) -> None:
        assert create_console(width=80).width == 80

    def test_default_width(self) -> None:
        assert create_console().width == 120

    def test_highlight_disabled(self) -> None:
        console = create_console()
        console.print("value=42")
        assert "\x1b" not in get_output(console)


class TestTheme:
    def test_theme_styles_present(self) -> None:
        for name in ("tm.ok", "tm.error", "tm.warning", "tm.op", "tm.slow", "tm.fast"):
            assert name in TRANSMUTE_THEME.styles
