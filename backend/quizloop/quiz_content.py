SAMPLE_QUIZZES = [
    {
        "title": "Python Basics",
        "description": "Warm-up questions on core Python syntax and types.",
        "category": "Programming",
        "time_limit_minutes": 5,
        "passing_score_percent": 70,
        "questions": [
            {
                "id": "py-1",
                "text": "Which keyword defines a function?",
                "type": "single_choice",
                "options": ["def", "func", "lambda", "define"],
                "correct_options": [0]
            },
            {
                "id": "py-2",
                "text": "What does len([1, 2, 3]) return?",
                "type": "single_choice",
                "options": ["2", "3", "4", "An error"],
                "correct_options": [1]
            },
            {
                "id": "py-3",
                "text": "Which of these types are immutable?",
                "type": "multi_choice",
                "options": ["tuple", "list", "str", "dict"],
                "correct_options": [0, 2]
            },
            {
                "id": "py-4",
                "text": "What is the value of 7 // 2?",
                "type": "single_choice",
                "options": ["3.5", "4", "3", "1"],
                "correct_options": [2]
            }
        ]
    },
    {
        "title": "World Capitals",
        "description": "How well do you know the capitals of the world?",
        "category": "General Knowledge",
        "time_limit_minutes": 0,
        "passing_score_percent": 60,
        "questions": [
            {
                "id": "cap-1",
                "text": "What is the capital of Australia?",
                "type": "single_choice",
                "options": ["Sydney", "Canberra", "Melbourne", "Perth"],
                "correct_options": [1]
            },
            {
                "id": "cap-2",
                "text": "What is the capital of Canada?",
                "type": "single_choice",
                "options": ["Toronto", "Vancouver", "Ottawa", "Montreal"],
                "correct_options": [2]
            },
            {
                "id": "cap-3",
                "text": "Which of these cities are national capitals?",
                "type": "multi_choice",
                "options": ["Nairobi", "Lagos", "Lima", "Zurich"],
                "correct_options": [0, 2]
            }
        ]
    },
    {
        "title": "Fractions and Percentages",
        "description": "Quick arithmetic with fractions and percentages.",
        "category": "Mathematics",
        "time_limit_minutes": 10,
        "passing_score_percent": 75,
        "questions": [
            {
                "id": "math-1",
                "text": "What is 25% of 80?",
                "type": "single_choice",
                "options": ["20", "25", "32", "40"],
                "correct_options": [0]
            },
            {
                "id": "math-2",
                "text": "Which fractions are equal to 1/2?",
                "type": "multi_choice",
                "options": ["2/4", "3/5", "5/10", "4/6"],
                "correct_options": [0, 2]
            },
            {
                "id": "math-3",
                "text": "What is 3/4 written as a percentage?",
                "type": "single_choice",
                "options": ["34%", "75%", "43%", "70%"],
                "correct_options": [1]
            },
            {
                "id": "math-4",
                "text": "What is 1/3 + 1/6?",
                "type": "single_choice",
                "options": ["2/9", "1/2", "1/9", "2/3"],
                "correct_options": [1]
            }
        ]
    }
]
