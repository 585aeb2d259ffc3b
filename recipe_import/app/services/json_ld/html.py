"""Pull schema.org JSON-LD blocks out of a saved recipe page."""

import logging
from typing import List, Optional

from bs4 import BeautifulSoup

from recipe_import.app.schemas.errors import JsonInvalidSchemaError
from recipe_import.app.schemas.recipe import RecipeParseResult
from recipe_import.app.services.json_ld.extractor import parse_recipe_json_ld

logger = logging.getLogger(__name__)

NO_JSON_LD_MESSAGE = "No JSON-LD data found in the page."


def find_json_ld_blocks(html: str) -> List[str]:
    """Return the non-empty text of every ``application/ld+json`` script."""
    soup = BeautifulSoup(html, "lxml")
    scripts = soup.find_all("script", attrs={"type": "application/ld+json"})
    logger.info("Found %d JSON-LD script blocks", len(scripts))
    blocks: List[str] = []
    for idx, script in enumerate(scripts):
        raw_json = script.string or script.get_text()
        if not raw_json or not raw_json.strip():
            logger.debug("JSON-LD block %d is empty", idx)
            continue
        blocks.append(raw_json.strip())
    return blocks


def parse_recipe_html(html: str, source_url: Optional[str] = None) -> RecipeParseResult:
    """Parse the first JSON-LD block on the page that holds a Recipe.

    A block whose Recipe fails validation still wins, since the user can fix
    its fields. When no block holds a Recipe the first block's failure is
    returned.
    """
    blocks = find_json_ld_blocks(html)
    if not blocks:
        return RecipeParseResult(
            success=False,
            errors=[NO_JSON_LD_MESSAGE],
            import_error=JsonInvalidSchemaError(
                message=NO_JSON_LD_MESSAGE,
                received_type="none",
            ),
            source_url=source_url,
        )

    first_failure: Optional[RecipeParseResult] = None
    for idx, block in enumerate(blocks):
        result = parse_recipe_json_ld(block, source_url=source_url)
        if result.recipe is not None:
            logger.info("Using JSON-LD block %d of %d", idx + 1, len(blocks))
            return result
        logger.debug("JSON-LD block %d holds no Recipe: %s", idx, "; ".join(result.errors))
        if first_failure is None:
            first_failure = result
    return first_failure
