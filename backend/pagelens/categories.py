"""
Section categories and the analysis emphasis each one gets in detailed mode.

Oracle labels are free text ("Hero Section", "Customer Testimonials (Additional)").
`categorize()` maps them onto a closed set; anything unrecognised is GENERAL.
"""

from enum import Enum


class SectionCategory(str, Enum):
    HERO = "hero"
    SOCIAL_PROOF = "social_proof"
    CALL_TO_ACTION = "call_to_action"
    PRICING = "pricing"
    FEATURES = "features"
    NAVIGATION = "navigation"
    FOOTER = "footer"
    GENERAL = "general"


# Checked in order, first keyword hit wins
CATEGORY_KEYWORDS = [
    (SectionCategory.HERO, ("hero", "above the fold", "banner", "masthead")),
    (SectionCategory.SOCIAL_PROOF, ("testimonial", "trust", "proof", "review", "logo", "customer", "case stud", "press")),
    (SectionCategory.CALL_TO_ACTION, ("call to action", "call-to-action", "cta", "sign up", "signup", "get started", "newsletter")),
    (SectionCategory.PRICING, ("pricing", "plans", "price")),
    (SectionCategory.FEATURES, ("feature", "benefit", "value prop", "how it works", "product")),
    (SectionCategory.NAVIGATION, ("nav", "header", "menu")),
    (SectionCategory.FOOTER, ("footer",)),
]


EMPHASIS = {
    SectionCategory.HERO: """HERO FOCUS:
- Quote the main headline EXACTLY as written in pulledQuote
- Judge whether the headline states who it is for and what they get
- Check the subheadline supports the headline instead of repeating it
- Note whether a primary call to action is visible without scrolling""",

    SectionCategory.SOCIAL_PROOF: """SOCIAL PROOF FOCUS:
- Judge credibility: real names, photos, job titles, company logos, numbers
- Flag vague or generic praise that could apply to any product
- Note whether proof is specific to the buyer's problem
- Quote the strongest testimonial or proof point in pulledQuote""",

    SectionCategory.CALL_TO_ACTION: """CALL TO ACTION FOCUS:
- Quote the LITERAL button text in pulledQuote
- Judge whether the button text says what happens on click
- Check visual contrast of the button against its background
- Note friction: extra fields, unclear next step, competing links""",

    SectionCategory.PRICING: """PRICING FOCUS:
- Check plans are easy to compare at a glance
- Note whether a recommended plan is highlighted
- Flag hidden costs, missing currency or unclear billing period
- Quote the headline price or plan name in pulledQuote""",

    SectionCategory.FEATURES: """FEATURES FOCUS:
- Judge whether features are framed as buyer outcomes or as specs
- Check scannability: headings, icons, short copy
- Quote the clearest benefit statement in pulledQuote""",

    SectionCategory.NAVIGATION: """NAVIGATION FOCUS:
- Judge clarity of menu labels and number of top-level items
- Check that the logo and a primary action are visible
- Quote the most prominent nav label or button in pulledQuote""",

    SectionCategory.FOOTER: """FOOTER FOCUS:
- Check for contact details, legal links and secondary navigation
- Note any last-chance conversion element (newsletter, CTA)
- Quote the most useful footer text in pulledQuote""",

    SectionCategory.GENERAL: """GENERAL FOCUS:
- Judge how clearly this section moves the visitor toward buying
- Quote the most important line of copy in pulledQuote""",
}


def categorize(label: str) -> SectionCategory:
    text = (label or "").lower()
    for category, keywords in CATEGORY_KEYWORDS:
        if any(k in text for k in keywords):
            return category
    return SectionCategory.GENERAL


def emphasis_for(label: str) -> str:
    return EMPHASIS[categorize(label)]
