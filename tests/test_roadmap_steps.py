from skillspark.utils.roadmap_steps import assign_step_ids, level_steps, point_ids


LIST_DOCUMENT = {
    "roadmap": {
        "beginner": ["Syntax", {"pointTitle": "Types", "description": "Primitive types"}],
        "intermediate": ["Traits"],
    }
}


def test_assign_step_ids_numbers_across_levels():
    processed = assign_step_ids(LIST_DOCUMENT)

    beginner = processed["roadmap"]["beginner"]
    assert beginner["step_1"] == {"pointId": "step_1", "pointTitle": "Syntax", "title": "Syntax"}
    assert beginner["step_2"]["description"] == "Primitive types"
    assert beginner["step_2"]["title"] == "Types"
    assert list(processed["roadmap"]["intermediate"]) == ["step_3"]
    # input untouched
    assert isinstance(LIST_DOCUMENT["roadmap"]["beginner"], list)


def test_assign_step_ids_leaves_converted_levels():
    document = {"roadmap": {"beginner": {"step_1": {"title": "Syntax"}}}}

    assert assign_step_ids(document) == document


def test_assign_step_ids_ignores_other_shapes():
    assert assign_step_ids({"points": [1, 2]}) == {"points": [1, 2]}


def test_level_steps_from_list_matches_assigned_ids():
    steps = level_steps(LIST_DOCUMENT, "intermediate")

    assert steps == [{
        "pointId": "step_3",
        "title": "Traits",
        "level": "intermediate",
        "description": "Learn about Traits",
    }]


def test_level_steps_falls_back_to_points():
    document = {
        "points": [
            {"id": "b", "title": "Second", "level": "beginner", "order": 2},
            {"id": "a", "title": "First", "level": "beginner", "order": 1},
            {"id": "z", "title": "Other", "level": "advanced", "order": 1},
        ]
    }

    assert [s["pointId"] for s in level_steps(document, "beginner")] == ["a", "b"]
    assert level_steps(document, "intermediate") == []


def test_point_ids_deduplicates():
    document = {
        "roadmap": {"beginner": {"step_1": {"pointId": "step_1", "title": "A"}}},
        "points": [{"id": "step_1"}, {"id": "p9"}],
    }

    assert point_ids(document) == ["step_1", "p9"]
    assert point_ids("not a document") == []


def test_assign_step_ids_continues_after_highest_existing_step():
    document = {
        "roadmap": {
            "beginner": ["Syntax", "Types"],
            "advanced": {"step_3": {"pointId": "step_3", "title": "Macros"}},
        }
    }

    processed = assign_step_ids(document)

    assert list(processed["roadmap"]["beginner"]) == ["step_4", "step_5"]
    assert point_ids(processed) == ["step_4", "step_5", "step_3"]
