"""Tests for the line-oriented stats page extractor."""

from hypothesis import given, settings, strategies as st

from steamstats.models import GameInfo
from steamstats.services.extractor import (
    MAX_LINE_LENGTH,
    StatsExtractor,
    iter_lines,
    parse_count,
)

ROW = '<tr class="player_count_row" style="">'
CLEAN_ROW = (
    '<tr class="player_count_row" style="..."> ... <span class="currentServers">1,234</span>\n'
    '<span class="currentServers">5,000</span>\n'
    '<a class="gameLink" href="/app/42/FooGame/">Foo Game</a>\n'
)


def fixed_clock(value: float = 1_700_000_000.0):
    return lambda: value


def render_row(game: GameInfo) -> str:
    return (
        f'{ROW}\n'
        f'\t<td><span class="currentServers">{game.current:,}</span></td>\n'
        f'\t<td><span class="currentServers">{game.peak:,}</span></td>\n'
        f'\t<td></td>\n'
        f'\t<td><a class="gameLink" href="{game.url}">{game.name}</a></td>\n'
        f'</tr>\n'
    )


def test_clean_row() -> None:
    snapshot = StatsExtractor(clock=fixed_clock()).extract(CLEAN_ROW.encode())

    assert snapshot.time == 1_700_000_000
    assert snapshot.games == [GameInfo(name="Foo Game", url="/app/42/FooGame/", current=1234, peak=5000)]


def test_unparsable_current_still_appends() -> None:
    body = CLEAN_ROW.replace("1,234", "N/A").encode()

    snapshot = StatsExtractor().extract(body)

    assert snapshot.games == [GameInfo(name="Foo Game", url="/app/42/FooGame/", current=0, peak=5000)]


def test_missing_href_terminator_waits_for_next_link() -> None:
    body = (
        f'{ROW}\n'
        '<span class="currentServers">7</span>\n'
        '<span class="currentServers">9</span>\n'
        '<a class="gameLink" href="/app/7/Bar\n'
        '<a class="gameLink" href="/app/9/Baz/">Baz</a>\n'
    ).encode()

    snapshot = StatsExtractor().extract(body)

    assert snapshot.games == [GameInfo(name="Baz", url="/app/9/Baz/", current=7, peak=9)]


def test_missing_href_terminator_at_end_drops_record() -> None:
    body = (
        f'{ROW}\n'
        '<span class="currentServers">7</span>\n'
        '<span class="currentServers">9</span>\n'
        '<a class="gameLink" href="/app/7/Bar\n'
    ).encode()

    assert StatsExtractor().extract(body).games == []


def test_missing_closing_anchor_keeps_record_with_empty_name() -> None:
    body = CLEAN_ROW.replace("Foo Game</a>", "Foo Game").encode()

    snapshot = StatsExtractor().extract(body)

    assert snapshot.games == [GameInfo(name="", url="/app/42/FooGame/", current=1234, peak=5000)]


def test_unterminated_span_still_advances() -> None:
    body = CLEAN_ROW.replace("1,234</span>", "1,234").encode()

    snapshot = StatsExtractor().extract(body)

    assert snapshot.games == [GameInfo(name="Foo Game", url="/app/42/FooGame/", current=0, peak=5000)]


def test_intervening_lines_are_ignored() -> None:
    body = (
        '<html><body>\n'
        f'{ROW}\n'
        '<td>nothing here</td>\n'
        '<span class="currentServers">10</span>\n'
        '<td class="spacer"></td>\n'
        '<span class="currentServers">20</span>\n'
        '<td>\n'
        '<a class="gameLink" href="/app/1/">One</a>\n'
    ).encode()

    assert StatsExtractor().extract(body).games == [GameInfo(name="One", url="/app/1/", current=10, peak=20)]


def test_markers_on_one_line_are_used_in_order() -> None:
    body = (
        f'{ROW}\n'
        '<span class="currentServers">1</span><span class="currentServers">2</span>\n'
        '<span class="currentServers">3</span>\n'
        '<a class="gameLink" href="/a/">A</a><a class="gameLink" href="/b/">B</a>\n'
    ).encode()

    assert StatsExtractor().extract(body).games == [GameInfo(name="A", url="/a/", current=1, peak=2)]


def test_count_on_row_marker_line() -> None:
    body = (
        '<tr class="player_count_row" style="..."> ... <span class="currentServers">1,234</span>\n'
        '<span class="currentServers">5,000</span>\n'
        '<a class="gameLink" href="/app/42/FooGame/">Foo Game</a>\n'
    ).encode()

    assert StatsExtractor().extract(body).games == [
        GameInfo(name="Foo Game", url="/app/42/FooGame/", current=1234, peak=5000)
    ]


def test_whole_rows_on_one_line() -> None:
    row = (
        f'{ROW}<td><span class="currentServers">10</span></td>'
        '<td><span class="currentServers">20</span></td>'
        '<td><a class="gameLink" href="/app/1/">One</a></td></tr>'
    )
    body = (row + row.replace("One", "Two").replace("10", "11")).encode()

    assert StatsExtractor().extract(body).games == [
        GameInfo(name="One", url="/app/1/", current=10, peak=20),
        GameInfo(name="Two", url="/app/1/", current=11, peak=20),
    ]


def test_fields_reset_between_rows() -> None:
    body = CLEAN_ROW + CLEAN_ROW.replace("1,234", "x").replace("5,000", "y").replace("Foo Game<", "Other<")

    games = StatsExtractor().extract(body.encode()).games

    assert games[1] == GameInfo(name="Other", url="/app/42/FooGame/", current=0, peak=0)


def test_entities_and_crlf_pass_through() -> None:
    body = CLEAN_ROW.replace("Foo Game", "Tom Clancy&#39;s R&amp;D").replace("\n", "\r\n").encode()

    assert StatsExtractor().extract(body).games[0].name == "Tom Clancy&#39;s R&amp;D"


def test_empty_body() -> None:
    snapshot = StatsExtractor(clock=fixed_clock(42.9)).extract(b"")

    assert snapshot.time == 42
    assert snapshot.games == []


def test_long_lines_are_truncated() -> None:
    line = b"a" * (MAX_LINE_LENGTH + 100)

    assert [len(part) for part in iter_lines(line + b"\nb")] == [MAX_LINE_LENGTH, 1]


def test_parse_count() -> None:
    assert parse_count("1,234,567") == 1234567
    assert parse_count("0") == 0
    assert parse_count("") is None
    assert parse_count("N/A") is None
    assert parse_count(" 12") is None


game_names = st.text(
    min_size=1,
    max_size=40,
    alphabet=st.characters(whitelist_categories=("Lu", "Ll", "Nd", "Zs", "Po")),
).filter(lambda x: "\n" not in x and "</a>" not in x)

game_rows = st.builds(
    GameInfo,
    name=game_names,
    url=st.integers(min_value=1, max_value=10**7).map(lambda n: f"/app/{n}/"),
    current=st.integers(min_value=0, max_value=10**7),
    peak=st.integers(min_value=0, max_value=10**7),
)


@given(st.lists(game_rows, max_size=20))
@settings(deadline=None)
def test_rendered_rows_are_recovered_in_order(games: list[GameInfo]) -> None:
    """Property: every well-formed row comes back once, in page order, with its counts."""
    body = "<table>\n" + "".join(render_row(game) for game in games) + "</table>\n"

    snapshot = StatsExtractor().extract(body.encode("utf-8"))

    assert snapshot.games == games


@given(st.binary(max_size=2000))
@settings(deadline=None)
def test_arbitrary_input_never_raises(body: bytes) -> None:
    """Property: any byte input yields a snapshot with integer counts."""
    snapshot = StatsExtractor().extract(body)

    assert all(isinstance(game.current, int) and isinstance(game.peak, int) for game in snapshot.games)
