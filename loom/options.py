__copyright__ = "Copyright (C) 2024 Loom Developers"

__license__ = """
Permission is hereby granted, free of charge, to any person obtaining a copy
of this software and associated documentation files (the "Software"), to deal
in the Software without restriction, including without limitation the rights
to use, copy, modify, merge, publish, distribute, sublicense, and/or sell
copies of the Software, and to permit persons to whom the Software is
furnished to do so, subject to the following conditions:

The above copyright notice and this permission notice shall be included in
all copies or substantial portions of the Software.

THE SOFTWARE IS PROVIDED "AS IS", WITHOUT WARRANTY OF ANY KIND, EXPRESS OR
IMPLIED, INCLUDING BUT NOT LIMITED TO THE WARRANTIES OF MERCHANTABILITY,
FITNESS FOR A PARTICULAR PURPOSE AND NONINFRINGEMENT. IN NO EVENT SHALL THE
AUTHORS OR COPYRIGHT HOLDERS BE LIABLE FOR ANY CLAIM, DAMAGES OR OTHER
LIABILITY, WHETHER IN AN ACTION OF CONTRACT, TORT OR OTHERWISE, ARISING FROM,
OUT OF OR IN CONNECTION WITH THE SOFTWARE OR THE USE OR OTHER DEALINGS IN
THE SOFTWARE.
"""


from pytools import ImmutableRecord
import re
import os


ALLOW_TERMINAL_COLORS = True

DEFAULT_VALID_DTYPES = frozenset({"int32", "float32"})


class _ColoramaStub:
    def __getattribute__(self, name):
        return ""


class Options(ImmutableRecord):
    """
    .. rubric:: Validation options

    .. attribute:: valid_dtypes

        A :class:`frozenset` of dtype names accepted by
        :class:`loom.constraints.dtype.TensorDTypesAreValid` when the
        constraint is not given an explicit allow-set.

        Defaults to ``{"int32", "float32"}``.

    .. attribute:: describe_coverage_sets

        If *True*, coverage issues raised by
        :class:`loom.constraints.coverage.ApplicationOutputRangeCoverageIsExact`
        carry a description of the missing and doubly-covered index points,
        computed with :mod:`islpy`.

        Defaults to *True*.

    .. rubric:: Reporting options

    .. attribute:: allow_terminal_colors

        A :class:`bool`. Whether to allow colors in terminal output

    .. attribute:: max_context_data_lines

        If not *None*, the number of lines of context data shown per
        context in :func:`loom.validation.format_issues`.
    """

    def __init__(self, **kwargs):
        try:
            import colorama  # noqa
        except ImportError:
            allow_terminal_colors_def = False
        else:
            allow_terminal_colors_def = True

        allow_terminal_colors_def = (
                ALLOW_TERMINAL_COLORS
                and allow_terminal_colors_def
                # https://no-color.org/
                and "NO_COLOR" not in os.environ)

        unknown = set(kwargs) - {
                "valid_dtypes", "describe_coverage_sets",
                "allow_terminal_colors", "max_context_data_lines"}
        if unknown:
            raise TypeError("unknown options: %s" % ", ".join(sorted(unknown)))

        ImmutableRecord.__init__(
                self,

                valid_dtypes=frozenset(
                    kwargs.get("valid_dtypes", DEFAULT_VALID_DTYPES)),
                describe_coverage_sets=kwargs.get("describe_coverage_sets", True),

                allow_terminal_colors=kwargs.get("allow_terminal_colors",
                    allow_terminal_colors_def),
                max_context_data_lines=kwargs.get("max_context_data_lines", None),
                )

    @property
    def _fore(self):
        if self.allow_terminal_colors:
            import colorama
            return colorama.Fore
        else:
            return _ColoramaStub()

    @property
    def _style(self):
        if self.allow_terminal_colors:
            import colorama
            return colorama.Style
        else:
            return _ColoramaStub()


KEY_VAL_RE = re.compile("^([a-zA-Z0-9_]+)=(.*)$")


def make_options(options_arg):
    """
    :arg options_arg: Either an :class:`Options`, a :class:`dict`, or a
        string such as ``"describe_coverage_sets,max_context_data_lines=4"``.
        A bare name sets a flag, a name prefixed with ``no_`` clears it.
    """
    if options_arg is None:
        return Options()
    elif isinstance(options_arg, Options):
        return options_arg
    elif isinstance(options_arg, dict):
        return Options(**options_arg)

    assert isinstance(options_arg, str)

    iopt_dict = {}
    for options_str in options_arg.split(","):
        options_str = options_str.strip()
        if not options_str:
            continue

        kv_match = KEY_VAL_RE.match(options_str)
        if kv_match is not None:
            key = kv_match.group(1)
            val = kv_match.group(2)
            if key == "valid_dtypes":
                val = frozenset(val.split(":"))
            elif key == "max_context_data_lines":
                val = int(val)
            else:
                try:
                    val = {"True": True, "False": False}[val]
                except KeyError:
                    pass

            iopt_dict[key] = val

        elif options_str.startswith("no_"):
            iopt_dict[options_str[3:]] = False
        else:
            iopt_dict[options_str] = True

    return Options(**iopt_dict)
