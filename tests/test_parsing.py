"""Tests for completion parsers."""

import pytest


# ---------------------------------------------------------------------------
# Bullet sections
# ---------------------------------------------------------------------------

def test_bullet_section_under_heading():
    from ideas_finder.analyzer.parsing import parse_bullet_section

    result = parse_bullet_section("### Heading\n• A\n• B\n", r"Heading")

    assert result.ok
    assert result.value == ["A", "B"]


def test_bullet_section_stops_at_next_heading():
    from ideas_finder.analyzer.parsing import parse_bullet_section

    text = "### First\n- one\n* two\n### Second\n• three"
    assert parse_bullet_section(text, r"First").value == ["one", "two"]
    assert parse_bullet_section(text, r"Second").value == ["three"]


def test_bullet_section_missing_heading_reports_failure():
    from ideas_finder.analyzer.parsing import parse_bullet_section

    result = parse_bullet_section("• A\n• B", r"Heading")

    assert not result.ok
    assert result.value == []
    assert result.failure == "heading not found"


def test_bullet_lines_skip_horizontal_rules():
    from ideas_finder.analyzer.parsing import bullet_lines

    assert bullet_lines("• A\n---\n• B\n***") == ["A", "B"]


def test_bullet_list_falls_back_to_plain_lines():
    from ideas_finder.analyzer.parsing import parse_bullet_list

    result = parse_bullet_list("Offline mode\n\nDark theme\n")

    assert result.ok
    assert result.fallback_used
    assert result.value == ["Offline mode", "Dark theme"]


# ---------------------------------------------------------------------------
# Sentiment
# ---------------------------------------------------------------------------

def test_app_sentiment_with_headings(app_sentiment_text):
    from ideas_finder.analyzer.parsing import APP_SENTIMENT, parse_sentiment

    result = parse_sentiment(app_sentiment_text, APP_SENTIMENT)

    assert result.ok
    assert not result.fallback_used
    assert result.value.likes == ["Fast sync across devices", "Clean layout"]
    assert result.value.dislikes == [
        "Crashes on startup after the last update",
        "Too expensive for what it offers",
    ]
    assert result.value.label == "Mixed"
    assert result.value.summary == app_sentiment_text.strip()


def test_idea_sentiment_with_headings(idea_sentiment_text):
    from ideas_finder.analyzer.parsing import IDEA_SENTIMENT, parse_sentiment

    result = parse_sentiment(idea_sentiment_text, IDEA_SENTIMENT)

    assert result.value.likes == ["Saves time planning meals", "Local ingredients"]
    assert result.value.dislikes == ["Price compared to grocery stores"]
    assert not result.fallback_used


def test_sentiment_without_headings_splits_halves():
    from ideas_finder.analyzer.parsing import APP_SENTIMENT, parse_sentiment

    text = "• Great sync\n• Nice design\n• Crashes a lot\n• Slow export"
    result = parse_sentiment(text, APP_SENTIMENT)

    assert result.ok
    assert result.fallback_used
    assert result.value.likes == ["Great sync", "Nice design"]
    assert result.value.dislikes == ["Crashes a lot", "Slow export"]


def test_empty_sentiment_uses_placeholders():
    from ideas_finder.analyzer.parsing import APP_SENTIMENT, parse_sentiment

    result = parse_sentiment("   ", APP_SENTIMENT)

    assert result.ok
    assert result.value.likes == ["No specific likes identified"]
    assert result.value.dislikes == ["No specific dislikes identified"]
    assert result.value.summary == "Unable to analyze reviews."


def test_empty_idea_sentiment_uses_idea_placeholders():
    from ideas_finder.analyzer.parsing import IDEA_SENTIMENT, parse_sentiment

    result = parse_sentiment("", IDEA_SENTIMENT)

    assert result.value.likes == ["No specific value propositions identified"]
    assert result.value.dislikes == ["No specific concerns identified"]
    assert result.value.summary == "Unable to analyze business idea."


def test_empty_side_gets_placeholder_but_label_counts_real_items():
    from ideas_finder.analyzer.parsing import APP_SENTIMENT, parse_sentiment

    text = (
        "### What Do Users Like About the App\nNothing notable\n"
        "### What Do Users Dislike About This App and What Features Do They "
        "Want Added or Changed\n• Crashes"
    )
    result = parse_sentiment(text, APP_SENTIMENT)

    assert result.value.likes == ["No specific likes identified"]
    assert result.value.dislikes == ["Crashes"]
    assert result.value.label == "Mostly Negative"


@pytest.mark.parametrize(
    "likes,dislikes,label",
    [
        (5, 2, "Mostly Positive"),
        (4, 2, "Mixed"),
        (1, 3, "Mostly Negative"),
        (0, 0, "Mixed"),
    ],
)
def test_sentiment_label_needs_more_than_double(likes, dislikes, label):
    from ideas_finder.analyzer.parsing import sentiment_label

    assert sentiment_label(likes, dislikes) == label


# ---------------------------------------------------------------------------
# Keywords and names
# ---------------------------------------------------------------------------

def test_comma_list_trims_and_drops_empties():
    from ideas_finder.analyzer.parsing import parse_comma_list

    assert parse_comma_list("notes, sync , ,productivity").value == [
        "notes", "sync", "productivity",
    ]
    assert not parse_comma_list(" , ").ok


def test_name_lines_strip_numbering_and_bullets():
    from ideas_finder.analyzer.parsing import parse_name_lines

    result = parse_name_lines("1. Notely\n• SyncPad\n\n- Jotter\n2) Inkwell")

    assert result.value == ["Notely", "SyncPad", "Jotter", "Inkwell"]


def test_free_text_is_trimmed():
    from ideas_finder.analyzer.parsing import parse_free_text

    assert parse_free_text("  A new app.\n").value == "A new app."
    assert parse_free_text("\n\n").failure == "empty completion"


# ---------------------------------------------------------------------------
# Backlog
# ---------------------------------------------------------------------------

def test_backlog_priorities_and_default():
    from ideas_finder.analyzer.parsing import parse_backlog
    from ideas_finder.analyzer.types import Priority

    text = (
        "Here is the backlog:\n"
        "1. [High] Fix crashes - stop the crash on launch\n"
        "2. [Low] Dark mode\n"
        "3. Some task without tags\n"
    )
    result = parse_backlog(text)

    assert result.ok
    assert not result.fallback_used
    assert [item.priority for item in result.value] == [
        Priority.HIGH, Priority.LOW, Priority.MEDIUM,
    ]
    assert [item.content for item in result.value] == [
        "Fix crashes - stop the crash on launch",
        "Dark mode",
        "Some task without tags",
    ]


def test_backlog_tag_is_case_insensitive():
    from ideas_finder.analyzer.parsing import parse_backlog_line
    from ideas_finder.analyzer.types import Priority

    item = parse_backlog_line("4. [high] Export to PDF")

    assert item.priority == Priority.HIGH
    assert item.content == "Export to PDF"


def test_backlog_without_markers_uses_every_line():
    from ideas_finder.analyzer.parsing import parse_backlog
    from ideas_finder.analyzer.types import Priority

    result = parse_backlog("Fix login\nAdd export")

    assert result.fallback_used
    assert [item.content for item in result.value] == ["Fix login", "Add export"]
    assert all(item.priority == Priority.MEDIUM for item in result.value)


def test_backlog_empty_completion_fails():
    from ideas_finder.analyzer.parsing import parse_backlog

    assert parse_backlog("").failure == "empty completion"


def test_backlog_item_rejects_empty_content():
    from ideas_finder.analyzer.types import BacklogItem

    with pytest.raises(ValueError):
        BacklogItem(content="   ")


# ---------------------------------------------------------------------------
# Recommendations
# ---------------------------------------------------------------------------

def test_recommendations_keep_only_tagged_lines_in_tier_order():
    from ideas_finder.analyzer.parsing import parse_recommendations

    text = (
        "Here you go:\n"
        "[MEDIUM] Polish onboarding\n"
        "[CRITICAL] Validate demand\n"
        "random text\n"
        "[HIGH] Build the MVP\n"
        "[LOW] Not a tier\n"
        "[MEDIUM] Add referrals\n"
    )
    result = parse_recommendations(text)

    assert result.value == [
        "[CRITICAL] Validate demand",
        "[HIGH] Build the MVP",
        "[MEDIUM] Polish onboarding",
        "[MEDIUM] Add referrals",
    ]


def test_recommendations_without_tags_fail():
    from ideas_finder.analyzer.parsing import parse_recommendations

    result = parse_recommendations("Just build it.\nThen sell it.")

    assert not result.ok
    assert result.value == []


def test_derived_recommendations_from_dislikes():
    from ideas_finder.analyzer.parsing import derive_recommendations

    result = derive_recommendations([
        "Crashes on startup after the last update",
        "Too expensive for what it offers",
    ])

    assert result == [
        "[HIGH] Stability: Fix bugs and improve app stability.",
        "[HIGH] Pricing: Review pricing strategy and offer more affordable options.",
        "[MEDIUM] Feedback: Regular user feedback collection and implementation.",
    ]


def test_derived_recommendations_pad_by_position():
    from ideas_finder.analyzer.parsing import derive_recommendations

    assert derive_recommendations([]) == [
        "[MEDIUM] Quality: Continue improving overall app quality.",
        "[MEDIUM] Experience: Maintain current positive user experience.",
        "[MEDIUM] Feedback: Regular user feedback collection and implementation.",
    ]
    assert derive_recommendations(["App crashes"])[1:] == [
        "[MEDIUM] Experience: Maintain current positive user experience.",
        "[MEDIUM] Feedback: Regular user feedback collection and implementation.",
    ]


def test_derived_recommendations_are_not_capped():
    from ideas_finder.analyzer.parsing import derive_recommendations

    result = derive_recommendations(["crash", "slow", "expensive", "no support"])

    assert len(result) == 4
    assert all(rec.startswith("[HIGH]") for rec in result)
