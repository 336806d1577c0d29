from __future__ import annotations

"""Demo questions used to seed an empty bank."""

DEMO_QUESTIONS = [
    {
        "category": "assessment",
        "text": "What does HTML stand for?",
        "options": [
            "HyperText Markup Language",
            "HighText Machine Language",
            "Hyperlinking Textual Mark Language",
            "Home Tool Markup Language",
        ],
        "correct_index": 0,
    },
    {
        "category": "assessment",
        "text": "Which CSS property is used to change the text color?",
        "options": ["font-color", "text-color", "color", "text-style"],
        "correct_index": 2,
    },
    {
        "category": "assessment",
        "text": "All Bloops are Razzies and all Razzies are Lazzies. Are all Bloops definitely Lazzies?",
        "options": ["Yes", "No", "Cannot be determined"],
        "correct_index": 0,
    },
    {
        "category": "ops",
        "text": "Which command lists files in Unix/Linux?",
        "options": ["ps", "ls", "cd", "pwd"],
        "correct_index": 1,
    },
    {
        "category": "ops",
        "text": "What does API stand for?",
        "options": [
            "Application Programming Interface",
            "Advanced Programming Interface",
            "Automated Programming Interface",
            "Application Process Integration",
        ],
        "correct_index": 0,
    },
    {
        "category": "hr",
        "text": "What is the most important skill in teamwork?",
        "options": ["Competition", "Communication", "Individual performance", "Silence"],
        "correct_index": 1,
    },
    {
        "category": "hr",
        "text": "What is the primary goal of performance reviews?",
        "options": [
            "To criticize employees",
            "To provide feedback and development",
            "To reduce salaries",
            "To create stress",
        ],
        "correct_index": 1,
    },
]
