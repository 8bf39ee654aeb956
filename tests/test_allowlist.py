from hunter.allowlist import (
    GENERIC_DESCRIPTION,
    AllowedMethod,
    allowed_methods,
    describe,
    format_method_list,
    is_allowed,
    parse_method,
)


def test_allowlist_accepts_known_methods() -> None:
    for path in allowed_methods():
        assert is_allowed(path)
    assert parse_method("nft.getNftsForOwner") is AllowedMethod.GET_NFTS_FOR_OWNER


def test_allowlist_rejects_everything_else() -> None:
    assert not is_allowed("core.sendTransaction")
    assert not is_allowed("eth_getBalance")
    assert not is_allowed("core.getbalance")
    assert not is_allowed("")
    assert not is_allowed(None)  # type: ignore[arg-type]


def test_describe_falls_back_to_generic_text() -> None:
    assert "balance" in describe("core.getBalance").lower()
    assert describe("core.unknownMethod") == GENERIC_DESCRIPTION


def test_format_method_list_covers_every_method() -> None:
    rendered = format_method_list()
    assert len(rendered.splitlines()) == len(AllowedMethod)
    for method in AllowedMethod:
        assert f'"{method.value}"' in rendered


def test_namespace_property() -> None:
    assert AllowedMethod.GET_LOGS.namespace == "core"
    assert AllowedMethod.GET_OWNERS_FOR_NFT.namespace == "nft"
