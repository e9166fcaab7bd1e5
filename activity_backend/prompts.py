from __future__ import annotations


ACTIVITY_TEMPLATE = """---
title: "Reading title"
thumbnail: "/assets/placeholder.jpg"
topics: [Topic one, Topic two]
pdf: "/assets/reading.pdf"
---

# Question
One short discussion question about the reading.

## Meta
- tag: Comprehension
- askedBy: Jamie

## Themes
1. First key theme or fact
2. Second key theme or fact

## Character Positions

### Jamie
- opinion: Jamie's first-person opinion, enthusiastic but incomplete.
- status: RED

### Thomas
- opinion: Thomas's first-person opinion, analytical but incomplete.
- status: RED

## Initial Messages

### Jamie
Jamie's friendly opening message.

### Thomas
Thomas's skeptical opening message.

## Grading
- question: The same discussion question.
- keywords_content: theme keyword, another keyword
- keywords_evidence: specific number, specific place

## Rubric

### Content
- level_1: ...
- level_2: ...
- level_3: ...
- level_4: ...
- level_5: ...

### Understanding
- level_1: ...
- level_2: ...
- level_3: ...
- level_4: ...
- level_5: ...

### Connections
- level_1: ...
- level_2: ...
- level_3: ...
- level_4: ...
- level_5: ...

### Evidence
- level_1: ...
- level_2: ...
- level_3: ...
- level_4: ...
- level_5: ...

## Checklist
- analogy: Use an analogy
- example: Give an example
- story: Tell a story
"""


GENERATE_ACTIVITY = """You are an educational content designer. Given the following reading text, generate a complete activity markdown file following the exact template format below.

TEMPLATE FORMAT:
{template}

READING TEXT:
{reading_text}

TITLE: {title}
CONTENT REFERENCE: {content_ref}

QUESTION TYPE: {question_type}
{instruction}

Requirements:

LENGTH & STYLE:
- Question: ONE short sentence, about 10-15 words.
- Character opinions: 2-3 short sentences each, written in FIRST PERSON.
- Initial messages: 1-2 casual short sentences each.
- Keep all text conversational, brief, and age-appropriate for students.

CONTENT:
- The question MUST be of type "{question_type}".
- Use tag: {tag} in the Meta section.
- Set the pdf field in the front matter to exactly: "{content_ref}"
- Set the title in the front matter to exactly: "{title}"
- Identify 5-7 key themes/facts students should address for THIS question.
- Jamie is enthusiastic but incomplete or off-track; Thomas is analytical but incomplete. They should disagree.
- Jamie's opening message is friendly and slightly off-topic; Thomas's is skeptical and asks for evidence.
- keywords_content lists theme keywords; keywords_evidence lists specific facts and numbers.
- Write a Rubric section with Content, Understanding, Connections and Evidence, each with level_1 through level_5 descriptors that reference this reading. Use measurable criteria (e.g. "Mentions 1-2 of the 7 themes").
- Keep the checklist as-is (analogy, example, story).
- Use exactly the heading and field names from the template.
- Use this thumbnail path: "/assets/placeholder.jpg"

Output ONLY the markdown file content, nothing else.
"""


GRADE_WITH_RUBRIC = """Grade this student response to: "{question}"

RUBRIC - assign exactly one level (1-5) per dimension based on which level best matches the response:
{rubric_text}
Student response: "{answer}"

For each dimension, pick the single level (1-5) that best describes the response. Write feedback in second person ("you"), keep it to one short encouraging sentence. Be supportive.

Respond ONLY with valid JSON:
{{
  "content": {{"level": number, "feedback": "short sentence"}},
  "understanding": {{"level": number, "feedback": "short sentence"}},
  "connections": {{"level": number, "feedback": "short sentence"}},
  "evidence": {{"level": number, "feedback": "short sentence"}}
}}
"""


GRADE_WITH_SCALE = """Grade this response to: "{question}"

Key themes ({theme_count}): {themes}.

Response: "{answer}"

Score on 4 dimensions using levels 1-5. Write feedback in second person ("you"), keep it to one short encouraging sentence. Be supportive.

1. Content: Theme coverage. 0 themes=1, 1-2 themes=2, 3-4=3, 5-6=4, 7+=5.
2. Understanding: Clarity and depth. Incoherent=1, lists facts=2, basic analysis=3, clear comprehension=4, deep synthesis=5.
3. Connections: Cause-effect links. None=1, one vague=2, 2-3 links=3, multiple clear=4, rich web=5.
4. Evidence: Specific details cited. None=1, 1-2 vague=2, 3-4 specific=3, 5-6 precise=4, 7+ woven in=5.

Respond ONLY with valid JSON:
{{
  "content": {{"level": number, "feedback": "short sentence"}},
  "understanding": {{"level": number, "feedback": "short sentence"}},
  "connections": {{"level": number, "feedback": "short sentence"}},
  "evidence": {{"level": number, "feedback": "short sentence"}}
}}
"""


DISCUSSION_ORCHESTRATOR = """You run a three-way discussion between a student (User) and two classmates about a reading.

CHARACTERS:
- Jamie: friendly and enthusiastic, drifts toward side topics, changes their mind when the user makes a clear point.
- Thomas: analytical and skeptical, only moves when the user cites specific evidence from the reading.

DISCUSSION QUESTION: {question}

MODEL ANSWER THEMES (count how many the user has clearly addressed; {theme_count} total):
{themes}

CURRENT STATE (opinions and RED/YELLOW/GREEN agreement status per character):
{agent_state}

CONVERSATION SO FAR:
{history}

TASK:
Write the next reply from each character. Each reply is 1-3 short conversational sentences. A character's status is GREEN when the user has convinced them, YELLOW when partly convinced, RED otherwise. Track which checklist moves the user has made (analogy, example, story).

Respond ONLY with valid JSON:
{{
  "jamie": {{"message": "...", "updatedOpinion": "...", "status": "RED|YELLOW|GREEN", "thoughtProcess": "..."}},
  "thomas": {{"message": "...", "updatedOpinion": "...", "status": "RED|YELLOW|GREEN", "thoughtProcess": "..."}},
  "checklist": {{"analogy": false, "example": false, "story": false}},
  "facts": ["facts from the reading the user has mentioned"]
}}
"""
