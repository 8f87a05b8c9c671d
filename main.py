import sys

from toolshell import ToolShell
from toolshell.templates import TemplateTool, TemplateSubCommandTool


if __name__ == '__main__':
    # "main.py commands ..." runs the subcommand template, anything else the top-level one
    if sys.argv[1:2] == ["commands"]:
        sys.exit(ToolShell(TemplateSubCommandTool()).run(sys.argv[2:]))
    sys.exit(ToolShell(TemplateTool()).run())
