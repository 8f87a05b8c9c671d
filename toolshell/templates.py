"""
Starting points for new tools.

- TemplateTool: a top-level tool with three options and three arguments
  that prints what it was given.
- TemplateSubCommandTool: the same declarations behind an "example" command.

Copy one, rename it and replace the declarations and the action.
"""
from .arguments import *
from .coercion import ValueType

EPILOG = "Created by Your Name — https://github.com/ — MIT License"


def _options():
    return [
        Option("-o|--option", "Option 1", Arity.SINGLE_VALUE),
        Option("-o2|--option2", "Option 2", Arity.MULTIPLE_VALUE),
        Option("-o3|--option3", "Option 3"),
    ]


def describe(declaration, /):
    """
    one-line summary of a bound option or argument.
    """
    values = declaration.values
    value = values[0] if values else None
    if isinstance(declaration, Option):
        return "Option %s: value = %s, values = %s, has_value = %s, type = %s, arity = %s" % (
            declaration.template,
            "(null)" if value is None else value,
            ", ".join(values) if values else "(empty)",
            declaration.has_value(),
            declaration.type.value,
            declaration.arity.value,
        )
    return "Argument %s: value = %s, type = %s, required = %s, empty = %s" % (
        declaration.name,
        "(null)" if value is None else value,
        declaration.type.value,
        declaration.required,
        declaration.empty,
    )


def _report(context, greeting, /):
    context.console.print(greeting, markup=False)
    for declaration in (*context.options, *context.arguments):
        context.console.print(describe(declaration), markup=False)


class TemplateTool:
    name = "template"
    title = "Top-Level Execution Tool"
    version = "1.0"
    epilog = EPILOG

    def declare(self):
        return _options(), [
            Argument("arg1", "Argument 1", required=True),
            Argument("arg2", "Argument 2", required=True, empty=True),
            Argument("arg3", "Argument 3", type=ValueType.INT32),
        ]

    def execute(self, context):
        _report(context, "Hello, World!")
        return 0


class TemplateSubCommandTool:
    name = "template"
    title = "Sub-Command Execution Tool"
    version = "1.0"
    epilog = EPILOG

    def register(self, registrar):
        registrar.command(
            "example",
            self.example,
            title="Command title help text",
            descr="Tool top-level help text",
            epilog="Command bottom-level help text",
            options=_options(),
            arguments=[
                Argument("arg1", "Argument 1"),
                Argument("arg2", "Argument 2", required=True, empty=True),
                Argument("arg3", "Argument 3", type=ValueType.DECIMAL),
            ],
        )

    def example(self, context):
        _report(context, "Hello, World! This is the '%s' command." % context.name)
        return 0


__all__ = (
    "describe",
    "TemplateTool",
    "TemplateSubCommandTool",
)
