import itertools

import pytest

from greybox.core.backend import Platform, Selector
from greybox.selectors.locator import (
    LocatorMode,
    RawLocator,
    Resolver,
    StructuredLocator,
    as_description,
    compose,
)
from greybox.selectors.spec import SelectorSpec, SpecSelectors


class PlatformProbe:
    def __init__(self, platform: Platform):
        self.platform = platform
        self.calls = 0

    def __call__(self) -> Platform:
        self.calls += 1
        return self.platform


def make_resolver(platform: Platform = Platform.IOS):
    probe = PlatformProbe(platform)
    return Resolver(SpecSelectors(), probe), probe


# ---------- string form ----------


def test_hash_sigil_is_id_regardless_of_mode():
    resolver, _ = make_resolver()
    assert resolver.resolve("#user", "text") == SelectorSpec("id", "user")
    assert resolver.resolve("#user", "type") == SelectorSpec("id", "user")


def test_tilde_sigil_is_label():
    resolver, _ = make_resolver()
    assert resolver.resolve("~nav-1", "type") == SelectorSpec("label", "nav-1")


def test_plain_string_follows_mode():
    resolver, _ = make_resolver()
    assert resolver.resolve("Sign in", LocatorMode.text) == SelectorSpec("text", "Sign in")
    assert resolver.resolve("RCTScrollView") == SelectorSpec("type", "RCTScrollView")


def test_any_mode_other_than_text_reads_as_type():
    resolver, _ = make_resolver()
    assert resolver.resolve("Button", "label") == SelectorSpec("type", "Button")
    assert resolver.resolve({"android": "Button", "ios": "Button"}, "") == SelectorSpec("type", "Button")
    assert resolver.resolve("Button", LocatorMode.text) == SelectorSpec("text", "Button")


def test_sigil_only_in_first_position():
    resolver, _ = make_resolver()
    assert resolver.resolve("a#b", "text") == SelectorSpec("text", "a#b")


def test_string_never_queries_platform():
    resolver, probe = make_resolver()
    resolver.resolve("#x")
    resolver.resolve("plain", "text")
    assert probe.calls == 0


# ---------- structured form ----------


def test_id_wins_over_label():
    resolver, _ = make_resolver()
    assert resolver.resolve({"id": "x", "label": "y"}, "type") == SelectorSpec("id", "x")


@pytest.mark.parametrize("k", [1, 2, 3, 4, 5])
def test_priority_order_holds_for_every_key_subset(k):
    resolver, _ = make_resolver()
    order = ["id", "label", "text", "type", "traits"]
    for keys in itertools.permutations(order, k):
        locator = {key: f"v-{key}" for key in keys}
        winner = min(keys, key=order.index)
        assert resolver.resolve(locator) == SelectorSpec(winner, f"v-{winner}")


def test_traits_list_is_passed_to_traits_selector():
    resolver, _ = make_resolver()
    assert resolver.resolve({"traits": ["button", "selected"]}) == SelectorSpec("traits", ("button", "selected"))


def test_platform_branch_on_ios():
    resolver, _ = make_resolver(Platform.IOS)
    assert resolver.resolve({"android": "SAVE", "ios": "Save"}, "text") == SelectorSpec("text", "Save")


def test_platform_branch_on_android_uses_same_mode():
    resolver, _ = make_resolver(Platform.ANDROID)
    assert resolver.resolve({"android": "SAVE", "ios": "Save"}, "text") == SelectorSpec("text", "SAVE")
    assert resolver.resolve({"android": "SAVE", "ios": "Save"}, "type") == SelectorSpec("type", "SAVE")


def test_platform_branch_short_circuits_other_keys():
    resolver, _ = make_resolver(Platform.ANDROID)
    locator = {"android": "#droid", "ios": "#apple", "id": "top", "label": "lbl"}
    assert resolver.resolve(locator) == SelectorSpec("id", "droid")


def test_platform_branch_can_be_structured():
    resolver, _ = make_resolver(Platform.IOS)
    locator = {"ios": {"label": "Done", "text": "ignored"}, "android": "#done"}
    assert resolver.resolve(locator) == SelectorSpec("label", "Done")


def test_missing_branch_for_platform_falls_back_to_keys():
    resolver, _ = make_resolver(Platform.IOS)
    assert resolver.resolve({"android": "#droid", "id": "shared"}) == SelectorSpec("id", "shared")


def test_platform_is_queried_on_every_call():
    resolver, probe = make_resolver(Platform.IOS)
    locator = {"android": "A", "ios": "I"}
    assert resolver.resolve(locator, "text") == SelectorSpec("text", "I")
    probe.platform = Platform.ANDROID
    assert resolver.resolve(locator, "text") == SelectorSpec("text", "A")
    assert probe.calls == 2


def test_unmatched_mapping_passes_through_unchanged():
    resolver, _ = make_resolver()
    raw = {"predicate": "name BEGINSWITH 'Row'"}
    assert resolver.resolve(raw) is raw


def test_unmatched_platform_only_mapping_passes_through():
    resolver, _ = make_resolver(Platform.IOS)
    raw = {"android": "#only-droid"}
    assert resolver.resolve(raw) is raw


def test_pre_resolved_selector_passes_through():
    resolver, _ = make_resolver()
    already = SelectorSpec("id", "ready")
    assert resolver.resolve(already) is already


def test_unset_values_are_skipped():
    resolver, _ = make_resolver()
    assert resolver.resolve({"id": "", "label": None, "text": "Hello"}) == SelectorSpec("text", "Hello")
    assert resolver.resolve({"id": 0, "label": False, "type": "Cell"}) == SelectorSpec("type", "Cell")


def test_empty_collections_still_count_as_set():
    resolver, _ = make_resolver()
    assert resolver.resolve({"traits": []}) == SelectorSpec("traits", ())
    assert resolver.resolve({"type": {}, "traits": ["button"]}) == SelectorSpec("type", {})


# ---------- description variants ----------


def test_as_description_variants():
    assert as_description("#x") == RawLocator("#x")
    desc = as_description({"id": "x", "ios": "#y"})
    assert desc.kind == "structured"
    assert desc.id == "x"
    assert desc.ios == RawLocator("#y")
    other = object()
    assert as_description(other).source is other


def test_explicit_structured_variant_without_keys_returns_itself():
    resolver, _ = make_resolver()
    desc = StructuredLocator()
    assert resolver.resolve(desc) is desc


# ---------- context composition ----------


def test_compose_is_not_commutative():
    ctx = SelectorSpec("id", "list")
    item = SelectorSpec("text", "Row 1")
    assert compose(ctx, item) != compose(item, ctx)
    assert compose(ctx, item) == SelectorSpec("id", "list", descendant=item)


def test_composed_selector_is_a_backend_selector():
    ctx, item = SelectorSpec("id", "list"), SelectorSpec("text", "Row")
    assert isinstance(ctx, Selector)
    assert isinstance(compose(ctx, item), Selector)


def test_resolve_within_reads_context_with_type_mode():
    resolver, _ = make_resolver()
    sel = resolver.resolve_within("Row 1", "RCTScrollView", LocatorMode.text)
    assert sel == SelectorSpec("type", "RCTScrollView", descendant=SelectorSpec("text", "Row 1"))


def test_resolve_within_without_context_is_plain_resolve():
    resolver, _ = make_resolver()
    assert resolver.resolve_within("#ok") == SelectorSpec("id", "ok")


def test_describe_nested_selector():
    sel = SelectorSpec("id", "form").with_descendant(SelectorSpec("text", "Send"))
    assert sel.describe() == "by.id('form').with_descendant(by.text('Send'))"
