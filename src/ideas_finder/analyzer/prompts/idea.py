"""Prompt builders for free-text business idea analyses.

The pricing and market-viability builders carry explicit conservative
revenue and market-size ranges.  Without them the model routinely projects
revenue one or two orders of magnitude above what new businesses earn.
"""

from __future__ import annotations

from ideas_finder.analyzer.context import AnalysisContext
from ideas_finder.analyzer.prompts import (
    LONG_BUDGET,
    MEDIUM_BUDGET,
    SHORT_BUDGET,
    backlog_text,
    join,
    truncate,
)
from ideas_finder.fetcher.models import IdeaSubject

_BULLET_JOIN = "\n• "
_LINE_JOIN = "\n"


def _idea(ctx: AnalysisContext) -> IdeaSubject:
    if not isinstance(ctx.subject, IdeaSubject):
        raise TypeError(f"Idea prompt built for a {ctx.domain} subject")
    return ctx.subject


def build_sentiment_prompt(ctx: AnalysisContext) -> str:
    idea = _idea(ctx)
    return f"""Analyze this business idea and generate two sets of 6-10 bullet points. The first set is 'what would customers value about this business idea' and the second set is 'what challenges or concerns might customers have, and what features or improvements would address them'.

Business Name: {idea.display_name}

Business Idea:
{ctx.raw_corpus}"""


def build_keywords_prompt(ctx: AnalysisContext) -> str:
    idea = _idea(ctx)
    return f"""Based on the following business idea, generate 20 relevant keywords that would be effective for SEO, App Store Optimization (ASO), and social media marketing:

Business Name: {idea.display_name}

Business Idea: {truncate(idea.idea, SHORT_BUDGET)}

What customers would value: {join(ctx.section("likes", []))}

Generate 20 keywords that are:
- Relevant to the business functionality and customer benefits
- Popular search terms customers might use
- Good for social media hashtags and marketing
- Specific enough to be effective but broad enough to capture traffic

Format as a simple comma-separated list of keywords."""


def build_definitely_include_prompt(ctx: AnalysisContext) -> str:
    idea = _idea(ctx)
    return f"""Based on what customers would value about this business idea, create a list of features that should definitely be included to ensure customer satisfaction.

Business Name: {idea.display_name}

Business Idea: {truncate(idea.idea, SHORT_BUDGET)}

What customers would value: {join(ctx.section("likes", []))}

Create 6-10 specific features that should definitely be included, based on what customers would value. These should be:
- Core features that address the main value proposition
- Essential functionality that customers need
- Key user experience elements that would work well
- Features that differentiate the business positively

Format as a simple bullet point list of features to definitely include."""


def build_backlog_prompt(ctx: AnalysisContext) -> str:
    idea = _idea(ctx)
    return f"""Based on this business idea, create a prioritized project backlog of specific, actionable development tasks that address potential customer concerns and requests.

Business Name: {idea.display_name}

Business Idea: {truncate(idea.idea, SHORT_BUDGET)}

Potential customer concerns/requests: {join(ctx.section("dislikes", []))}

What customers would value: {join(ctx.section("likes", []))}

Create 8-12 backlog items that are:
- Specific and actionable development tasks
- Prioritized by customer impact and feasibility
- Based on potential customer needs and concerns
- Include both core features and enhancements
- Written as clear development tasks

Format each item as:
1. [Priority] Task Title - Brief description

Example:
1. [High] User Authentication - Implement secure login system
2. [Medium] Dark Mode - Add dark theme option

Focus on the most important features and most requested enhancements."""


def build_recommendations_prompt(ctx: AnalysisContext) -> str:
    idea = _idea(ctx)
    return f"""You are a product strategy consultant analyzing this business idea to guide its development.

BUSINESS IDEA:
Business Name: {idea.display_name}

Business Concept:
{truncate(idea.idea, MEDIUM_BUDGET)}

CUSTOMER INTELLIGENCE:
What Customers Would Value:
• {join(ctx.section("likes", []), _BULLET_JOIN)}

Potential Customer Concerns/Requests:
• {join(ctx.section("dislikes", []), _BULLET_JOIN)}

Market Keywords: {join(ctx.section("keywords", []))}

PLANNED FEATURES:
Core Features:
• {join(ctx.section("definitely_include", []), _BULLET_JOIN)}

Additional Features:
• {backlog_text(ctx.section("backlog", []), _BULLET_JOIN)}

TASK:
Provide 8-10 strategic, actionable recommendations for building this business successfully. Focus on qualitative insights. Cover these areas:

1. **Market Opportunity** - Identify the strongest opportunities and potential pain points
2. **Development Priorities** - What to build first and why
3. **Market Positioning** - How to differentiate based on customer needs
4. **Innovation Opportunities** - Novel features or approaches customers would love
5. **Monetization Strategy** - Pricing approach based on the business model
6. **Technical Decisions** - Architecture choices based on requirements
7. **UX/UI Priorities** - Critical design decisions
8. **Launch Strategy** - Target customer segment, MVP scope, and go-to-market approach
9. **Competitive Advantages** - Specific ways to stand out

IMPORTANT FORMATTING:
Each recommendation MUST follow this exact format:
[CRITICAL] Category Title: One clear sentence explaining the strategic recommendation with specific reasoning.

Or:
[HIGH] Category Title: One clear sentence explaining the strategic recommendation with specific reasoning.

Or:
[MEDIUM] Category Title: One clear sentence explaining the strategic recommendation with specific reasoning.

Priority levels:
- [CRITICAL] = Must do first, blocking issue or huge opportunity
- [HIGH] = Should do early, significant impact
- [MEDIUM] = Important but can be phased in later

Requirements:
- Start each line with priority tag: [CRITICAL], [HIGH], or [MEDIUM]
- Make the explanation a FULL SENTENCE (15-25 words) that's specific and actionable
- Sort from highest to lowest priority (all CRITICAL first, then HIGH, then MEDIUM)
- Be specific, not generic"""


def build_description_prompt(ctx: AnalysisContext) -> str:
    idea = _idea(ctx)
    return f"""Based on this business idea, create a compelling 2-3 sentence description for the product/service.

Business Name: {idea.display_name}

Business Idea: {truncate(idea.idea, SHORT_BUDGET)}

Core Features: {join(ctx.section("definitely_include", []))}

Additional Features: {backlog_text(ctx.section("backlog", []))}

Keywords: {join(ctx.section("keywords", []))}

Create a description that:
- Explains what the business does in clear terms
- Highlights why it's valuable and how it helps customers
- Incorporates the most important features and benefits
- Is engaging and compelling for potential customers
- Is 2-3 sentences maximum

Write as if this is the product description for the business."""


def build_app_names_prompt(ctx: AnalysisContext) -> str:
    idea = _idea(ctx)
    return f"""Based on this business idea, generate up to 20 creative and compelling business/product names.

Business Name (if provided): {idea.name or "None"}

Business Idea: {truncate(idea.idea, SHORT_BUDGET)}

Core Features: {join(ctx.section("definitely_include", []))}

Additional Features: {backlog_text(ctx.section("backlog", []))}

Keywords: {join(ctx.section("keywords", []))}

Product Description: {ctx.section("description", "")}

Create names that are:
- Creative and memorable
- Relevant to the business functionality
- Easy to pronounce and spell
- Unique and distinctive
- Appeal to the target audience

Generate 15-20 names, one per line, without numbers or bullet points."""


def build_prp_prompt(ctx: AnalysisContext) -> str:
    idea = _idea(ctx)
    return f"""Create a comprehensive Product Requirements Prompt (PRP) that a developer can use to prompt an AI to build this business/product.

Business Name: {idea.display_name}

Business Idea: {truncate(idea.idea, MEDIUM_BUDGET)}

Product Description: {ctx.section("description", "")}

Core Features: {join(ctx.section("definitely_include", []))}

Backlog items: {backlog_text(ctx.section("backlog", []))}

Keywords: {join(ctx.section("keywords", []))}

Potential names: {join(ctx.section("app_names", []))}

Strategic Recommendations:
{join(ctx.section("recommendations", []), _LINE_JOIN)}

Create a detailed PRP that includes:
- Clear project overview and objectives aligned with the strategic recommendations
- Detailed feature specifications (prioritized based on the recommendations)
- User experience requirements
- Technical requirements and constraints (informed by the recommendations)
- Success metrics and goals
- Development phases and priorities (following the recommended approach)
- User stories and use cases

Integrate the strategic recommendations throughout the PRP to ensure the development plan is data-driven and strategically sound. Reference specific recommendations where relevant.

Format as a comprehensive prompt that an AI developer can use to start building the product. Make it detailed, actionable, and comprehensive."""


def build_competitors_prompt(ctx: AnalysisContext) -> str:
    idea = _idea(ctx)
    return f"""Based on this business idea, identify and analyze potential competitors in the market.

Business Name: {idea.display_name}

Business Idea: {truncate(idea.idea, MEDIUM_BUDGET)}

Market Keywords: {join(ctx.section("keywords", []))}

Provide a comprehensive competitor analysis that includes:
- Direct competitors (businesses solving the same problem)
- Indirect competitors (alternative solutions customers might use)
- For each competitor, identify:
  * Their name
  * What they do
  * Their strengths
  * Their weaknesses
  * Pricing model (if known/applicable)
  * Market position

Format as a structured list with competitor names as headers and details below each. Focus on businesses that would compete for the same customers."""


def _competitor_text(ctx: AnalysisContext) -> str:
    return ctx.section("competitors") or "No competitor data available"


def build_pricing_prompt(ctx: AnalysisContext) -> str:
    idea = _idea(ctx)
    return f"""You are a pricing strategist creating a comprehensive monetization strategy and business case for this business idea.

BUSINESS CONCEPT:
Business Name: {idea.display_name}

Description: {ctx.section("description", "")}

Core Features: {join(ctx.section("definitely_include", []))}

Additional Features: {backlog_text(ctx.section("backlog", []))}

Keywords: {join(ctx.section("keywords", []))}

Suggested Names: {join(ctx.section("app_names", []))}

CUSTOMER INTELLIGENCE:
What Customers Would Value: {join(ctx.section("likes", []))}

Potential Concerns/Requests: {join(ctx.section("dislikes", []))}

COMPETITIVE LANDSCAPE:
{_competitor_text(ctx)}

REQUIRED OUTPUT - Provide comprehensive pricing and revenue analysis:

**1. Competitive Pricing Intelligence**
- Analysis of competitor pricing strategies
- Price sensitivity considerations
- Market positioning opportunities (premium vs budget)

**2. Recommended Pricing Strategy**
- Primary model (Free, Freemium, Paid, Subscription, One-time, Hybrid)
- Specific price points for each tier
- Feature distribution across tiers (what's free vs paid)
- Rationale for each pricing decision

**3. Willingness-to-Pay Analysis**
- Features customers will pay for
- Features that must be free (table stakes)
- Value perception considerations

**4. Revenue Strategy & Scenarios**
- **CRITICAL: All revenue estimates must be EXTREMELY conservative. Industry data shows most businesses make $1K-$10K USD/month. Year 1 revenue for new businesses is typically $5K-$60K USD TOTAL, not per month. Always include "USD" when mentioning dollar amounts.**
- Conservative scenario: Based on slow organic growth and low conversion rates. Typically $5K-$15K USD total Year 1 revenue.
- Realistic scenario: Based on moderate marketing effort and typical conversion. Typically $15K-$40K USD total Year 1 revenue.
- Optimistic scenario: Based on strong product-market fit and viral growth. Typically $40K-$100K USD total Year 1 revenue. **Never exceed $100K USD for Year 1 unless there's proven market validation.**
- Focus on revenue drivers (pricing × conversion × retention)
- **Most businesses never reach $100K USD/year. Be realistic and conservative in all estimates.**

**5. Monetization Do's and Don'ts**
- What to avoid based on competitor analysis
- Pricing patterns that work in this category
- Upsell and cross-sell opportunities

**6. Launch Pricing Strategy**
- Initial pricing for launch (introductory offers?)
- Early adopter benefits
- Price optimization timeline
- A/B testing recommendations

Base recommendations on competitive analysis and customer needs. **MOST IMPORTANTLY: Revenue projections must be EXTREMELY conservative. The vast majority of businesses generate $1K-$10K USD/month. Year 1 revenue for new businesses is typically $5K-$60K USD TOTAL. Most businesses never reach $100K USD/year revenue. Be realistic and conservative in all estimates. Always include "USD" when mentioning dollar amounts.**"""


def build_market_viability_prompt(ctx: AnalysisContext) -> str:
    idea = _idea(ctx)
    return f"""You are a market analyst providing a comprehensive business viability assessment for this business idea.

BUSINESS IDEA:
Business Name: {idea.display_name}

Business Concept:
{truncate(idea.idea, LONG_BUDGET)}

CUSTOMER SENTIMENT ANALYSIS:
What Customers Would Value:
• {join(ctx.section("likes", []), _BULLET_JOIN)}

Potential Customer Concerns/Requests:
• {join(ctx.section("dislikes", []), _BULLET_JOIN)}

COMPETITIVE LANDSCAPE:
{_competitor_text(ctx)}

PLANNED FEATURES:
Core: {join(ctx.section("definitely_include", []))}
Additional: {backlog_text(ctx.section("backlog", []))}

REQUIRED OUTPUT - Provide comprehensive market viability analysis covering:

**1. Total Addressable Market (TAM)**
- Market size estimation based on business category and industry research
- Growth trends and trajectory for this category
- Market maturity assessment

**2. Serviceable Available Market (SAM)**
- **IMPORTANT: SAM refers to the total addressable market size across the entire business sector/category, not just this specific business. Be extremely conservative - most business categories represent a fraction of the total market.**
- Realistic market segment size within the broader category that could potentially be reached
- Customer segments most likely to use this solution
- Specific pain points that represent capturable market opportunity
- **Keep estimates realistic - most business categories represent $10M-$100M USD total market size, not billions. Always include "USD" when mentioning dollar amounts.**

**3. Serviceable Obtainable Market (SOM)**
- **IMPORTANT: SOM refers to the realistic market share you could capture within the broader sector, not just from competitors. Be extremely conservative - new businesses typically capture 0.1%-1% of their category market.**
- Realistic market capture potential within the broader category (typically 0.1%-1% for new businesses)
- Target customer segments for launch
- Competitive positioning strategy
- **Keep estimates realistic - new businesses typically capture $10K-$500K USD in market share, not millions. Always include "USD" when mentioning dollar amounts.**

**4. Competitive Analysis**
- Competitor strengths and weaknesses
- Market gaps and opportunities
- Your competitive advantages based on feature analysis

**5. Revenue Potential**
- Pricing strategy based on competitive analysis
- Expected conversion rates based on similar businesses in category
- Realistic Year 1 revenue scenarios (conservative/realistic/optimistic)
- **CRITICAL: Revenue estimates must be VERY conservative. Most businesses generate far less revenue than expected. Industry data shows most businesses make $1K-$10K USD/month. Year 1 revenue for new businesses is typically $5K-$60K USD total, not per month. Be extremely conservative in all estimates. Always include "USD" when mentioning dollar amounts.**
- Key revenue drivers and monetization approach

**6. Risk Assessment**
- Market risks (saturation, competitor response)
- Technical risks
- Business risks (pricing sensitivity, churn indicators)
- Mitigation strategies

**7. Go-to-Market Strategy**
- Target customer segment to launch with
- Key messaging based on competitive advantages
- Launch timeline recommendations
- Success metrics to track

**8. Validation Signals**
- Why this market opportunity is viable
- Evidence of customer demand
- Customer willingness to pay indicators
- Signs this is a real opportunity vs a saturated market

Base your analysis on the business idea, competitive landscape, and category trends. **CRITICAL FOR REVENUE ESTIMATES: Be EXTREMELY conservative. Most businesses make $1K-$10K USD/month. Year 1 revenue for new businesses is typically $5K-$60K USD TOTAL, not per month. Most businesses never reach $100K USD/year. Always include "USD" when mentioning dollar amounts.** Avoid speculative revenue projections that can't be validated. Focus on qualitative market signals and positioning opportunities."""
