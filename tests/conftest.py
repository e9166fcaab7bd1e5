import pytest


DROUGHT_DOC = """# Question
How did drought affect forestry?
## Meta
- tag: Comprehension
- askedBy: Jamie
## Themes
1. Wildfires
2. Evacuations
## Character Positions
### Jamie
- opinion: Farms suffered most.
- status: RED
### Thomas
- opinion: Evidence is thin.
- status: YELLOW
## Initial Messages
### Jamie
Hi there!
### Thomas
Show me proof.
## Grading
- question: How did drought affect forestry?
- keywords_content: wildfire, evacuation
- keywords_evidence: hectare, million
## Checklist
- analogy: Use an analogy
"""


FULL_DOC = """---
title: "Drought in Canada"
thumbnail: /assets/drought_banner.png
topics: [Climate, Forestry]
pdf: /assets/drought-reading.pdf
---

# Question
How did the drought affect forests and other non-farming communities?

## Meta
- tag: "Comparison"
- askedBy: 'Thomas'

## Themes
1. Record wildfire season
2. Smoke and air quality warnings
3. Evacuations in Newfoundland

## Character Positions

### Jamie
- opinion: I keep thinking about the crops — wheat, canola, barley — all wiped out.
- status: GREEN

### Thomas
- opinion: Show me numbers before we call it a disaster.
- status: yellow

## Initial Messages

### Jamie
Hi! Thanks so much for helping us!

### Thomas
I need some strong evidence. What did the reading say?

## Grading
- question: Compare how forests and towns were affected.
- keywords_content: wildfire, smoke,  evacuat , , first nations
- keywords_evidence: 6.5 million, hectare

## Rubric

### Content
- level_1: Mentions none of the themes
- level_2: Mentions 1-2 of the 3 themes
- level_3: Mentions all 3 themes
- level_4: Mentions all 3 themes with detail
- level_5: Mentions all 3 themes and links them

### Understanding
- level_2: Lists facts
- level_4: Explains causes clearly

### Connections
- level_1: No links

### Evidence

## Checklist
- analogy: Use an analogy
- example: Give an example
- story: Tell a story
"""


class FakeClient:
    """Stands in for GeminiClient; records prompts and replays canned output."""

    def __init__(self, text=None, json_data=None, error=None):
        self.text = text
        self.json_data = json_data
        self.error = error
        self.prompts = []

    def generate_text(self, prompt, *, temperature=0.7):
        self.prompts.append(prompt)
        if self.error:
            raise self.error
        return self.text

    def generate_json(self, prompt, *, schema=None, temperature=0.4):
        self.prompts.append(prompt)
        if self.error:
            raise self.error
        return self.json_data


@pytest.fixture
def drought_doc():
    return DROUGHT_DOC


@pytest.fixture
def full_doc():
    return FULL_DOC
