from __future__ import annotations

from dvbi_metadata.models import DEFAULT_LANGUAGE, LocalizedString, MediaRepresentation
from dvbi_metadata.xml_nav import (
    ANY_NAMESPACE,
    Namespace,
    element_language,
    find_ancestor,
    get_child_element,
    get_child_elements,
    get_child_value,
    get_child_values,
    get_media,
    get_text,
    get_texts,
    local_name,
    parse_document,
)

DOC = """<?xml version="1.0" encoding="UTF-8"?>
<a:Root xmlns:a="urn:example:a" xmlns:b="urn:example:b" xml:lang="fr">
  <a:Name>Premier</a:Name>
  <b:Name xml:lang="de">Zweiter</b:Name>
  <a:Group>
    <a:Name>  Nested  </a:Name>
    <a:Item ref="x1">One</a:Item>
    <a:Item>Two</a:Item>
  </a:Group>
  <a:Logo><b:MediaUri contentType="image/png">https://example.com/logo.png</b:MediaUri></a:Logo>
  <a:Empty/>
</a:Root>
"""


def test_parse_document_handles_bom_and_bad_input() -> None:
    tree = parse_document("\ufeff" + DOC)
    assert tree is not None
    assert local_name(tree.root) == "Root"
    assert parse_document("") is None
    assert parse_document("   ") is None
    assert parse_document(None) is None
    assert parse_document("<open><unclosed></open>") is None


def test_children_are_direct_only() -> None:
    tree = parse_document(DOC)
    names = get_child_elements(tree.root, "Name")
    assert len(names) == 2
    assert get_child_elements(tree.root, "Item") == []
    assert get_child_elements(None, "Name") == []


def test_namespace_filter() -> None:
    tree = parse_document(DOC)
    only_b = get_child_elements(tree.root, "Name", Namespace.exact("urn:example:b"))
    assert [item.text for item in only_b] == ["Zweiter"]
    assert get_child_element(tree.root, "Name", Namespace.exact("urn:example:c")) is None
    assert ANY_NAMESPACE.matches("anything")


def test_child_values_and_attributes() -> None:
    tree = parse_document(DOC)
    group = get_child_element(tree.root, "Group")
    assert get_child_value(group, "Item") == "One"
    assert get_child_value(group, "Item", attribute="ref") == "x1"
    assert get_child_value(group, "Missing") is None
    assert get_child_values(group, "Item") == ["One", "Two"]
    # the second Item carries no ref attribute
    assert get_child_values(group, "Item", attribute="ref") == ["x1"]


def test_language_resolution_walks_ancestors() -> None:
    tree = parse_document(DOC)
    group = get_child_element(tree.root, "Group")
    nested = get_child_element(group, "Name")
    assert element_language(tree, nested) == "fr"
    assert get_text(tree, nested) == LocalizedString(lang="fr", text="Nested")
    texts = get_texts(tree, get_child_elements(tree.root, "Name"))
    assert texts == (LocalizedString("fr", "Premier"), LocalizedString("de", "Zweiter"))


def test_language_defaults_without_declaration() -> None:
    tree = parse_document("<Root><Name>Plain</Name><Name>  </Name></Root>")
    names = get_child_elements(tree.root, "Name")
    assert element_language(tree, names[0]) == DEFAULT_LANGUAGE
    assert get_texts(tree, names) == (LocalizedString(DEFAULT_LANGUAGE, "Plain"),)


def test_find_ancestor() -> None:
    tree = parse_document(DOC)
    group = get_child_element(tree.root, "Group")
    item = get_child_element(group, "Item")
    assert find_ancestor(tree, item, "Group") is group
    assert find_ancestor(tree, item, "Root") is tree.root
    assert find_ancestor(tree, item, "Schedule") is None


def test_get_media() -> None:
    tree = parse_document(DOC)
    logo = get_child_element(tree.root, "Logo")
    assert get_media(logo) == MediaRepresentation("https://example.com/logo.png", "image/png")
    assert get_media(get_child_element(tree.root, "Empty")) is None
    assert get_media(None) is None
