"""Tests for the StringIO-backed console factory."""

from graphpush.output.console import create_console, get_output


class TestConsole:
    def test_renders_to_buffer(self) -> None:
        console = create_console()
        console.print("hello")
        assert get_output(console) == "hello\n"

    def test_theme_styles_resolve(self) -> None:
        console = create_console(no_color=True)
        console.print("[gp.ok]OK[/gp.ok] [gp.count]3[/gp.count]")
        assert get_output(console) == "OK 3\n"

    def test_width_override(self) -> None:
        assert create_console(width=40).width == 40
