"""Prompt builders for App Store app analyses."""

from __future__ import annotations

from ideas_finder.analyzer.context import AnalysisContext
from ideas_finder.analyzer.prompts import (
    LONG_BUDGET,
    SIMILAR_APP_DESCRIPTION_BUDGET,
    backlog_text,
    join,
    truncate,
)
from ideas_finder.fetcher.models import AppMeta


def _app(ctx: AnalysisContext) -> AppMeta:
    if not isinstance(ctx.subject, AppMeta):
        raise TypeError(f"App prompt built for a {ctx.domain} subject")
    return ctx.subject


def build_sentiment_prompt(ctx: AnalysisContext) -> str:
    return (
        "Summarize these app reviews into two sets of 6-10 bullet points. "
        "The first set is 'what do users like about the app' and the second "
        "set is 'what do users dislike about this app and what features do "
        "they want added or changed'.\n\n"
        f"{ctx.raw_corpus}"
    )


def build_keywords_prompt(ctx: AnalysisContext) -> str:
    app = _app(ctx)
    return f"""Based on the following information about {app.name}, generate 20 relevant keywords that would be effective for App Store Optimization (ASO) and social media marketing:

App Description: {truncate(app.description, LONG_BUDGET)}

What users like: {join(ctx.section("likes", []))}

Generate 20 keywords that are:
- Relevant to the app's functionality and user benefits
- Popular search terms users might use
- Good for social media hashtags and marketing
- Specific enough to be effective but broad enough to capture traffic

Format as a simple comma-separated list of keywords."""


def build_definitely_include_prompt(ctx: AnalysisContext) -> str:
    app = _app(ctx)
    return f"""Based on what users like about {app.name}, create a list of features that should definitely be included in a similar app to ensure user satisfaction.

What users like: {join(ctx.section("likes", []))}

Create 6-10 specific features that should definitely be included, based on what users are praising. These should be:
- Core features that users consistently mention as positive
- Essential functionality that users love
- Key user experience elements that work well
- Features that differentiate the app positively

Format as a simple bullet point list of features to definitely include.

Example:
• Fast and responsive user interface
• Offline functionality
• Dark mode option
• Intuitive navigation
• Real-time synchronization"""


def build_backlog_prompt(ctx: AnalysisContext) -> str:
    app = _app(ctx)
    return f"""Based on user feedback for {app.name}, create a prioritized project backlog of specific, actionable development tasks that address user complaints and requests.

What users dislike/want: {join(ctx.section("dislikes", []))}

What users like: {join(ctx.section("likes", []))}

Create 8-12 backlog items that are:
- Specific and actionable development tasks
- Prioritized by user impact and feasibility
- Based directly on user feedback
- Include both bug fixes and feature requests
- Written as clear development tasks

Format each item as:
1. [Priority] Task Title - Brief description of what needs to be built/fixed

Example:
1. [High] Fix App Crashes - Address stability issues causing app to crash on startup
2. [Medium] Add Dark Mode - Implement dark theme option in settings menu

Focus on the most frequently mentioned issues and most requested features."""


def build_description_prompt(ctx: AnalysisContext) -> str:
    return f"""Based on the analysis, create a compelling 2-3 sentence app description for a new app that addresses user needs and incorporates the best features.

Features to definitely include: {join(ctx.section("definitely_include", []))}

Backlog items to address: {backlog_text(ctx.section("backlog", []))}

Keywords: {join(ctx.section("keywords", []))}

Create a description that:
- Explains what the app does in clear terms
- Highlights why it's good and how it helps users
- Incorporates the most important features and benefits
- Is engaging and compelling for potential users
- Is 2-3 sentences maximum
- Use "This new app" instead of any specific app name

Write as if this is the App Store description for a new, improved app."""


def build_app_names_prompt(ctx: AnalysisContext) -> str:
    return f"""Based on all the analysis and learnings, generate up to 20 creative and compelling app names for a new app.

Features to definitely include: {join(ctx.section("definitely_include", []))}

Backlog items to address: {backlog_text(ctx.section("backlog", []))}

Keywords: {join(ctx.section("keywords", []))}

App description: {ctx.section("description", "")}

Create app names that are:
- Creative and memorable
- Relevant to the app's functionality
- Easy to pronounce and spell
- App Store friendly (not too long)
- Unique and distinctive
- Appeal to the target audience

Generate 15-20 app names, one per line, without numbers or bullet points."""


def build_prp_prompt(ctx: AnalysisContext) -> str:
    return f"""Create a comprehensive Product Requirements Prompt (PRP) that a developer can use to prompt an AI to build this app.

App Description: {ctx.section("description", "")}

Features to definitely include: {join(ctx.section("definitely_include", []))}

Backlog items to address: {backlog_text(ctx.section("backlog", []))}

Keywords: {join(ctx.section("keywords", []))}

Potential app names: {join(ctx.section("app_names", []))}

Create a detailed PRP that includes:
- Clear project overview and objectives
- Detailed feature specifications
- User experience requirements
- Technical requirements and constraints
- Success metrics and goals
- Development phases and priorities
- User stories and use cases

Format as a comprehensive prompt that an AI developer can use to start building the app. Make it detailed, actionable, and comprehensive."""


def similar_app_line(app: dict) -> str:
    """``name - price - rating★ - description...`` for one similar app."""
    description = app.get("description") or ""
    summary = (
        description[:SIMILAR_APP_DESCRIPTION_BUDGET] + "..."
        if description
        else "No description"
    )
    return (
        f"{app.get('track_name') or app.get('collection_name') or 'Unknown app'}"
        f" - {app.get('formatted_price') or 'Free'}"
        f" - {app.get('rating') or 'N/A'}★"
        f" - {summary}"
    )


def build_pricing_prompt(ctx: AnalysisContext) -> str:
    similar = "\n".join(similar_app_line(a) for a in ctx.section("similar_apps", []))
    return f"""Based on the analysis of similar apps and the new app features, suggest an appropriate pricing model and specific prices in USD.

New App Description: {ctx.section("description", "")}

Features to definitely include: {join(ctx.section("definitely_include", []))}

Backlog items to address: {backlog_text(ctx.section("backlog", []))}

Keywords: {join(ctx.section("keywords", []))}

Similar Apps and their pricing:
{similar}

Create a concise pricing strategy that considers the value proposition and compares against similar apps. Provide:

1. **Executive Summary** - Brief overview of the pricing recommendation
2. **Recommended Pricing Model** - (Free, Paid, Freemium, Subscription, etc.)
3. **Specific Price Points** - Exact USD prices for different tiers
4. **Rationale** - Why this pricing strategy makes sense
5. **Comparison** - How it compares to similar apps

Keep each section concise and focused. Do not include revenue projections."""
