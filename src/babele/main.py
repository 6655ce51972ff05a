"""
Babele MCP Server
Serves translated compendium content of a world directory with FastMCP.
"""

import json
import logging
from typing import Annotated, Any, Literal

from fastmcp import FastMCP
from pydantic import Field

from .config import load_modules_file, load_settings
from .engine import Babele
from .errors import BabeleError
from .host import LocalWorld
from .storage import TranslationCache

logger = logging.getLogger("babele")

settings = load_settings()

logging.basicConfig(
    level=settings.log_level,
    )

mcp = FastMCP(
    name="babele"
)

_engine: Babele | None = None


async def get_engine() -> Babele:
    """Build and initialize the engine on first use."""
    global _engine
    if _engine is None:
        host = LocalWorld(settings.world_dir, data_dir=settings.data_dir, language=settings.language)
        cache = TranslationCache(settings.cache_dir, host.system_id, host.world_id)
        engine = Babele(host, directory=settings.directory, cache=cache)
        if settings.system_translations_dir:
            engine.set_system_translations_dir(settings.system_translations_dir)
        if settings.modules_file:
            for module in load_modules_file(settings.modules_file):
                engine.register(module)

        if await engine.init():
            logger.info(f"✅ Translations active for '{host.language}'")
        else:
            logger.warning(f"❌ No translations found for '{host.language}'")
        _engine = engine
    return _engine


def _dumps(data: Any) -> str:
    return json.dumps(data, indent=2, ensure_ascii=False)


async def _resolve_document(
    engine: Babele,
    pack: str,
    document: dict | None,
    document_id: str | None,
) -> dict | str:
    """Return the given document, or load it from the pack by id or name."""
    if document is not None:
        return document
    if not document_id:
        return "❌ Provide either a document or a document_id."
    compendium = engine.host.get_pack(pack)
    if compendium is None:
        return f"❌ Compendium '{pack}' not found."
    found = await compendium.get_document(document_id)
    if found is None:
        return f"❌ Document '{document_id}' not found in '{pack}'."
    return found


@mcp.tool
async def list_packs() -> str:
    """List the world's compendium packs and whether they are translated."""
    engine = await get_engine()
    if not engine.host.packs:
        return "❌ No compendium packs found."

    lines = [f"📚 Compendium packs ({engine.language}):"]
    for pack in engine.host.packs:
        state = "translated" if pack.collection in engine.packs else "untranslated"
        lines.append(f"- {pack.collection} ({pack.document_type}): {pack.label} [{state}]")
    return "\n".join(lines)


@mcp.tool
async def translate_document(
    pack: Annotated[str, Field(description="Collection key of the pack, e.g. 'dnd5e.items'")],
    document: Annotated[dict | None, Field(description="Document data to translate")] = None,
    document_id: Annotated[str | None, Field(description="Id or name of a document stored in the pack")] = None,
    translations_only: Annotated[bool, Field(description="Return only the translated fields")] = False,
) -> str:
    """Translate a compendium document."""
    engine = await get_engine()
    data = await _resolve_document(engine, pack, document, document_id)
    if isinstance(data, str):
        return data
    return _dumps(engine.translate(pack, data, translations_only=translations_only))


@mcp.tool
async def translate_field(
    pack: Annotated[str, Field(description="Collection key of the pack")],
    field: Annotated[str, Field(description="Mapped field name, e.g. 'name' or 'description'")],
    document: Annotated[dict | None, Field(description="Document data")] = None,
    document_id: Annotated[str | None, Field(description="Id or name of a document stored in the pack")] = None,
) -> str:
    """Translate a single mapped field of a compendium document."""
    engine = await get_engine()
    data = await _resolve_document(engine, pack, document, document_id)
    if isinstance(data, str):
        return data
    value = engine.translate_field(field, pack, data)
    if value is None:
        return f"❌ No value for field '{field}'."
    return value if isinstance(value, str) else _dumps(value)


@mcp.tool
async def extract_document(
    pack: Annotated[str, Field(description="Collection key of the pack")],
    document: Annotated[dict | None, Field(description="Document data")] = None,
    document_id: Annotated[str | None, Field(description="Id or name of a document stored in the pack")] = None,
) -> str:
    """Extract the translatable fields of a document as a translation entry."""
    engine = await get_engine()
    data = await _resolve_document(engine, pack, document, document_id)
    if isinstance(data, str):
        return data
    return _dumps(engine.extract(pack, data))


@mcp.tool
async def export_translations(
    pack: Annotated[str, Field(description="Collection key of the pack")],
    format: Annotated[Literal["object", "legacy"], Field(description="Entries as object keyed by name, or legacy array")] = "object",
    path: Annotated[str | None, Field(description="File to write the translation file to")] = None,
) -> str:
    """Export a translation file skeleton for every document of a pack."""
    engine = await get_engine()
    try:
        text = await engine.export_translations_file(pack, format=format, path=path)
    except BabeleError as e:
        return f"❌ {e}"
    if path:
        return f"💾 Exported translations of '{pack}' to {path}"
    return text


@mcp.tool
async def translate_actor(
    actor: Annotated[dict, Field(description="Actor data including its embedded items")],
) -> str:
    """Translate the items embedded in an actor from the translated packs."""
    engine = await get_engine()
    report = engine.translate_actor(actor)
    return _dumps(report.model_dump())


@mcp.tool
async def reload_translations() -> str:
    """Reload every translation source."""
    engine = await get_engine()
    if await engine.reload():
        return f"🔄 Reloaded translations for {len(engine.packs)} packs."
    return f"❌ No translations found for '{engine.language}'."


@mcp.tool
async def clear_translation_cache() -> str:
    """Remove all cached module translations."""
    engine = await get_engine()
    engine.clear_cache()
    return "🧹 Translation cache cleared."


def main() -> None:
    """Main entry point for the Babele MCP Server."""
    mcp.run()

if __name__ == "__main__":
    main()
