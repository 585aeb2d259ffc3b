from recipe_import.app.services.json_ld.html import NO_JSON_LD_MESSAGE, find_json_ld_blocks, parse_recipe_html

PAGE = """
<html>
  <head>
    <script type="application/ld+json">{"@type": "Organization", "name": "Cooks"}</script>
    <script type="application/ld+json">   </script>
    <script type="application/ld+json">
      {"@context": "https://schema.org", "@graph": [
        {"@type": "WebPage"},
        {"@type": "Recipe", "name": "Pancakes", "image": "https://example.com/p.jpg",
         "recipeIngredient": ["1 cup flour", "1 egg", "1 cup milk"]}
      ]}
    </script>
    <script>var notJsonLd = true;</script>
  </head>
  <body><h1>Pancakes</h1></body>
</html>
"""


def test_find_json_ld_blocks_skips_empty_scripts():
    blocks = find_json_ld_blocks(PAGE)
    assert len(blocks) == 2
    assert blocks[0].startswith('{"@type": "Organization"')


def test_parse_recipe_html_uses_first_recipe_block():
    result = parse_recipe_html(PAGE, source_url="https://example.com/pancakes")
    assert result.success
    assert result.recipe.name == "Pancakes"
    assert result.recipe.recipe_ingredient == ["1 cup flour", "1 egg", "1 cup milk"]
    assert result.source_url == "https://example.com/pancakes"


def test_parse_recipe_html_returns_first_failure():
    page = (
        '<script type="application/ld+json">{"@type": "WebSite"}</script>'
        '<script type="application/ld+json">{broken</script>'
    )
    result = parse_recipe_html(page)
    assert not result.success
    assert result.import_error.type == "json_invalid_schema"
    assert result.import_error.received_type == "WebSite"


def test_parse_recipe_html_without_json_ld():
    result = parse_recipe_html("<html><body>No data</body></html>")
    assert not result.success
    assert result.errors == [NO_JSON_LD_MESSAGE]
