"""
Workspace lifecycle commands.

- load [<target>] <file>: build a workspace from an image (soft failure)
- save [<file>]: write the workspace, remembering the file name
- restore <file>: rebuild a workspace from a saved document (hard failure)
- addpath <path>: extend the resource search paths

The context's workspace is either None or fully built. New workspaces are
held in a local until their init/restore step succeeds.
"""

from __future__ import annotations

import logging

from ..core.document import DocumentStore
from ..core.errors import (
    ERR_ALREADY_LOADED,
    ERR_CANNOT_OPEN_FILE,
    ERR_MISSING_FILE_NAME,
    ERR_MISSING_PATH,
    ERR_NO_WORKSPACE,
    ERR_UNRECOGNIZED_FORMAT,
    CommandResult,
    DocumentError,
    LowlevelError,
    from_collaborator_error,
)
from ..core.workspace import DEFAULT_TARGET, EXPERIMENTAL_RULES_TAG, GLOBAL_NAMESPACE
from .display import truncate
from .registry import Command, CommandRegistry, TokenStream
from .session import ConsoleContext

logger = logging.getLogger(__name__)


class LoadCommand(Command):
    help = "Load an image file: load [<target>] <file>"

    def execute(self, context: ConsoleContext, args: TokenStream) -> CommandResult:
        if context.workspace is not None:
            return CommandResult.execution_error("Load image already present", ERR_ALREADY_LOADED)

        filename = args.next()
        if filename is None:
            return CommandResult.parse_error("Missing file name", ERR_MISSING_FILE_NAME)
        if not args.eof:
            # Two parameters: target first, then file
            target = filename
            filename = args.next()
        else:
            target = DEFAULT_TARGET

        capa = context.capabilities.find_capability(filename)
        if capa is None:
            return CommandResult.execution_error(
                f"Unable to recognize imagefile {filename}", ERR_UNRECOGNIZED_FORMAT
            )
        workspace = capa.build_workspace(filename, target, context.out, context.search_paths)

        store = DocumentStore()
        if context.experimental_file:
            self._register_experimental_rules(context, store)

        try:
            workspace.init(store)
        except (DocumentError, LowlevelError) as err:
            context.write(err.explain)
            context.write("Could not create workspace")
            logger.warning("Rolled back load of %s: %s", filename, err.explain)
            context.workspace = None
            return CommandResult.ok(message=err.explain)

        if capa.name == "xml":
            workspace.read_loader_symbols(GLOBAL_NAMESPACE)
        context.workspace = workspace
        context.write(f"{filename} successfully loaded: {workspace.description}")
        return CommandResult.ok(value=workspace)

    @staticmethod
    def _register_experimental_rules(context: ConsoleContext, store: DocumentStore) -> None:
        path = context.experimental_file
        context.write(f"Trying to parse {path} for experimental rules")
        try:
            root = store.open_document(path)
        except DocumentError as err:
            context.write(err.explain)
            context.write("Skipping experimental rules")
            logger.info("Experimental rules %s skipped: %s", path, err.explain)
            return
        if root.tag == EXPERIMENTAL_RULES_TAG:
            store.register_tag(root)
        else:
            context.write(f"Wrong tag type for experimental rules: {root.tag}")


class AddpathCommand(Command):
    help = "Add a directory to the resource search paths"

    def execute(self, context: ConsoleContext, args: TokenStream) -> CommandResult:
        path = args.next()
        if path is None:
            return CommandResult.parse_error("Missing path name", ERR_MISSING_PATH)
        context.search_paths.add_dir(path)
        return CommandResult.ok(value=path)


class SaveCommand(Command):
    help = "Save the workspace: save [<file>]"

    def execute(self, context: ConsoleContext, args: TokenStream) -> CommandResult:
        if context.workspace is None:
            return CommandResult.execution_error("No workspace loaded", ERR_NO_WORKSPACE)

        filename = args.next()
        if filename is not None:
            context.last_path = filename
        if not context.last_path:
            return CommandResult.parse_error("Missing savefile name", ERR_MISSING_FILE_NAME)

        try:
            stream = open(context.last_path, "w")
        except OSError:
            return CommandResult.execution_error(
                f"Unable to open file: {context.last_path}", ERR_CANNOT_OPEN_FILE
            )
        with stream:
            context.workspace.save_xml(stream)
        return CommandResult.ok(value=context.last_path)


class RestoreCommand(Command):
    help = "Restore a saved workspace: restore <file>"

    def execute(self, context: ConsoleContext, args: TokenStream) -> CommandResult:
        filename = args.next()
        if filename is None:
            return CommandResult.parse_error("Missing file name", ERR_MISSING_FILE_NAME)
        context.last_path = filename

        store = DocumentStore()
        try:
            root = store.open_document(filename)
        except DocumentError as err:
            return from_collaborator_error(err)
        store.register_tag(root)
        context.clear_workspace()

        capa = context.capabilities.find_capability_for_document(root)
        if capa is None:
            return CommandResult.execution_error(
                "Could not find savefile tag", ERR_UNRECOGNIZED_FORMAT
            )
        workspace = capa.build_workspace("", "", context.out, context.search_paths)
        try:
            workspace.restore_xml(store)
        except (LowlevelError, DocumentError) as err:
            return from_collaborator_error(err)

        context.workspace = workspace
        context.write(f"{filename} successfully loaded: {workspace.description}")
        return CommandResult.ok(value=workspace)


class ExperimentalRulesCommand(Command):
    help = "Use a rule document on the next load"

    def execute(self, context: ConsoleContext, args: TokenStream) -> CommandResult:
        path = args.next()
        if path is None:
            return CommandResult.parse_error(
                "Missing name of file containing experimental rules", ERR_MISSING_FILE_NAME
            )
        if context.workspace is not None:
            return CommandResult.execution_error(
                "Experimental rules must be registered before loading", ERR_ALREADY_LOADED
            )
        context.experimental_file = path
        context.write(f"Successfully registered experimental file {path}")
        return CommandResult.ok(value=path)


class ClearWorkspaceCommand(Command):
    help = "Discard the current workspace"

    def execute(self, context: ConsoleContext, args: TokenStream) -> CommandResult:
        context.clear_workspace()
        return CommandResult.ok()


class ShowWorkspaceCommand(Command):
    help = "Describe the current workspace"

    def execute(self, context: ConsoleContext, args: TokenStream) -> CommandResult:
        ws = context.workspace
        if ws is None:
            context.write("No workspace loaded")
            return CommandResult.ok()
        context.write(f"{truncate(ws.filename or '<restored>')}: {ws.description}")
        context.write(f"  bytes: {ws.image_size}")
        for namespace, scope in sorted(ws.symbols.items()):
            context.write(f"  symbols in {namespace}: {len(scope)}")
        if ws.rules:
            context.write(f"  experimental rules: {', '.join(ws.rules)}")
        return CommandResult.ok(value=ws.description)


def register_domain_commands(registry: CommandRegistry) -> None:
    registry.register(ExperimentalRulesCommand(), "experimental", "rules")
    registry.register(ClearWorkspaceCommand(), "clear", "workspace")
    registry.register(ShowWorkspaceCommand(), "show", "workspace")


def register_lifecycle_commands(registry: CommandRegistry) -> None:
    """Console-specific commands, layered over whatever was registered before."""
    load = LoadCommand()
    registry.register(load, "load")
    registry.register(load, "load", "file")
    registry.register(AddpathCommand(), "addpath")
    registry.register(SaveCommand(), "save")
    registry.register(RestoreCommand(), "restore")
