"""Click option helpers for picking exactly one content source.

``clipshelf add`` takes its content from either --text or --image. Each
option of such a group names its siblings; the group may not be combined,
and with ``one_required`` at least one member must be given.
"""
import click


def _flag(name: str) -> str:
    return "--" + name.replace("_", "-")


def check_content_sources(name: str, siblings: list[str], opts: dict, one_required: bool) -> None:
    """Validate one member of a content source group against the parsed options.

    Args:
        name: Parameter name of the option being processed.
        siblings: Parameter names of the other group members.
        opts: Options given on the command line, keyed by parameter name.
        one_required: Whether the group must be given at all.

    Raises:
        click.UsageError: If two sources are given, or none when one is required.
    """
    if name in opts:
        for other in siblings:
            if other in opts:
                raise click.UsageError(
                    f"Options {_flag(name)} and {_flag(other)} are mutually exclusive"
                )
    elif one_required and not any(other in opts for other in siblings):
        choices = " or ".join(_flag(member) for member in [name, *siblings])
        raise click.UsageError(f"Either {choices} must be specified")


class ContentSourceOption(click.Option):
    """Click option belonging to a group of alternative content sources."""

    def __init__(self, *args, **kwargs):
        self.siblings = kwargs.pop("siblings", [])
        self.one_required = kwargs.pop("one_required", False)
        super().__init__(*args, **kwargs)

    def handle_parse_result(self, ctx, opts, args):
        """Check the group before the value is converted."""
        check_content_sources(self.name, self.siblings, opts, self.one_required)
        return super().handle_parse_result(ctx, opts, args)
