# triage/dialogue/prompts.py
from __future__ import annotations

from typing import List, Optional, Sequence

from triage.dialogue.schema import OBJECTIVE_DISCLAIMER, ConversationEntry


def _build_transcript_block(transcript: Sequence[ConversationEntry]) -> str:
    """
    Build a labelled transcript like:

      Chief complaint: What brings you here today?
      Patient response: headache for two days

      Question 1: When did it start?
      Patient response: ...

    Entries still waiting for an answer are left out.
    """
    blocks: List[str] = []
    for index, entry in enumerate(transcript):
        if entry.is_pending:
            continue
        label = "Chief complaint" if index == 0 else f"Question {index}"
        blocks.append(f"{label}: {entry.question}\nPatient response: {entry.answer}")
    return "\n\n".join(blocks)


def build_question_prompt(
    complaint: str,
    transcript: Sequence[ConversationEntry],
    turn_number: int,
    max_turns: Optional[int] = None,
) -> str:
    position = f"question {turn_number} of {max_turns}" if max_turns else f"question {turn_number}"
    return (
        "You are a medical AI assistant conducting a patient triage interview. "
        "Based on the patient's complaint and previous responses, generate ONE "
        "specific, relevant follow-up question to gather important clinical information.\n\n"
        f"Primary complaint: {complaint}\n\n"
        "Previous conversation:\n"
        f"{_build_transcript_block(transcript)}\n\n"
        f"This is {position}. Generate a clear, professional medical question that:\n"
        "1. Gathers specific clinical details relevant to the complaint\n"
        "2. Helps assess severity, duration, or associated symptoms\n"
        "3. Is appropriate for a patient to answer\n"
        "4. Avoids asking for information already provided\n\n"
        "Generate only the question, no additional text or formatting:"
    )


def build_continuation_prompt(
    complaint: str,
    transcript: Sequence[ConversationEntry],
) -> str:
    return (
        "You are reviewing an in-progress triage interview on behalf of a clinician. "
        "Decide whether the information gathered so far is sufficient to write a "
        "preliminary clinical note, or whether another question is needed.\n\n"
        f"Presenting complaint: {complaint}\n\n"
        "Interview so far:\n"
        f"{_build_transcript_block(transcript)}\n\n"
        "Information is sufficient only when all of these are covered:\n"
        "- Symptom characterization: onset, duration, severity and quality\n"
        "- Associated symptoms, including any red-flag symptoms\n"
        "- Relevant medical history (conditions, medications, allergies)\n"
        "- Modifying factors: what makes it better or worse\n\n"
        "Reply with a single JSON object and nothing else, without markdown code fences:\n"
        '{"needsMoreInfo": true or false, '
        '"reasoning": "one sentence explaining the decision", '
        '"suggestedFocus": "the area the next question should cover, if any"}'
    )


def build_note_prompt(
    complaint: str,
    transcript: Sequence[ConversationEntry],
) -> str:
    return (
        "You are a medical AI assistant. Based on the patient interview below, "
        "generate a structured SOAP note.\n\n"
        f"Reason for visit: {complaint}\n\n"
        "Patient interview:\n"
        f"{_build_transcript_block(transcript)}\n\n"
        "Write these sections:\n\n"
        "subjective: Summarize the patient's chief complaint and symptoms in their own "
        "words, including onset, duration, severity, quality, and associated symptoms.\n\n"
        f'objective: Use exactly this text: "{OBJECTIVE_DISCLAIMER}"\n\n'
        "assessment: Provide a preliminary assessment based on the subjective data. "
        "Include possible differential diagnoses but clearly state this is a preliminary "
        "AI assessment, not a medical diagnosis.\n\n"
        "plan: Recommend next steps including physician evaluation, and mention any "
        "urgent care considerations if applicable.\n\n"
        'Return ONLY a JSON object with the string keys "subjective", "objective", '
        '"assessment" and "plan". Do not wrap it in markdown.'
    )
