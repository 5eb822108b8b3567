from sqlalchemy import func, select

from directory_app.models import JobLevel, db
from scripts.init_database import DEFAULT_JOB_LEVELS, create_default_job_levels


def test_default_job_levels_are_seeded_once():
    created = create_default_job_levels()
    again = create_default_job_levels()

    assert len(created) == len(DEFAULT_JOB_LEVELS)
    assert again == []
    assert db.session.scalar(select(func.count()).select_from(JobLevel)) == len(DEFAULT_JOB_LEVELS)


def test_seed_keeps_existing_levels(job_levels):
    created = create_default_job_levels()

    assert {level.code for level in created} == {"A3", "A4", "E2", "O2", "OTE"}
    assert db.session.scalar(select(JobLevel.hierarchical_order).where(JobLevel.code == "D1")) == 4.0


def test_seeded_codes_match_alias_dictionary():
    from directory_app.importer.mapping import DEFAULT_ALIASES_PATH, load_job_level_aliases

    aliases = load_job_level_aliases(DEFAULT_ALIASES_PATH)

    assert set(aliases.aliases.values()) == {code for code, *_ in DEFAULT_JOB_LEVELS}
