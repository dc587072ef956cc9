import pytest

from conftest import make_category, make_job, make_skill, make_user
from jobboard.core.exceptions import ArgumentError, InvalidOperationError, NotFoundError
from jobboard.models.job import JobCategory, JobSkill
from jobboard.schemas.category_schema import CategoryCreate, CategoryUpdate, SkillCreate, SkillUpdate
from jobboard.services.category_service import CategoryService
from jobboard.services.skill_service import SkillService


async def test_category_names_are_unique_ignoring_case(db):
    service = CategoryService(db)
    web = await service.create_category(CategoryCreate(name="Web Development", description="Sites and apps"))
    design = await service.create_category(CategoryCreate(name="Design", description="Logos"))

    with pytest.raises(InvalidOperationError):
        await service.create_category(CategoryCreate(name="  web development ", description="Again"))
    with pytest.raises(InvalidOperationError):
        await service.update_category(design.category_id, CategoryUpdate(name="WEB DEVELOPMENT", description="x"))

    renamed = await service.update_category(web.category_id, CategoryUpdate(name="Web", description="Sites"))
    assert renamed.name == "Web"


async def test_inactive_categories_are_listed_on_request(db):
    await make_category(db, "Writing")
    retired = await make_category(db, "Flash")
    await db.commit()

    service = CategoryService(db)
    toggled = await service.toggle_status(retired.category_id)
    assert toggled.is_active is False
    await make_category(db, "Audio")
    await db.commit()

    assert [c.name for c in await service.list_categories()] == ["Audio", "Writing"]
    assert [c.name for c in await service.list_categories(include_inactive=True)] == ["Audio", "Flash", "Writing"]

    assert (await service.toggle_status(retired.category_id)).is_active is True
    with pytest.raises(NotFoundError):
        await service.get_category(404)


async def test_top_categories_count_live_jobs(db):
    client = await make_user(db)
    web = await make_category(db, "Web Development")
    design = await make_category(db, "Design")
    await make_category(db, "Unused")
    for title in ("Shop", "Blog"):
        job = await make_job(db, client, title=title)
        job.category_links.append(JobCategory(category=web))
    gone = await make_job(db, client, title="Withdrawn")
    gone.is_active = False
    gone.category_links.append(JobCategory(category=design))
    await db.commit()

    top = await CategoryService(db).get_top_categories(2)

    assert [(c.name, c.job_count) for c in top] == [("Web Development", 2), ("Design", 0)]
    with pytest.raises(ArgumentError):
        await CategoryService(db).get_top_categories(0)


async def test_skill_search_and_status_filter(db):
    await make_skill(db, "Python")
    await make_skill(db, "PyTorch", is_active=False)
    await make_skill(db, "React")
    await db.commit()

    service = SkillService(db)
    assert [s.name for s in await service.list_skills(search="py")] == ["PyTorch", "Python"]
    assert [s.name for s in await service.list_skills(search="py", is_active=True)] == ["Python"]
    assert len(await service.list_skills()) == 3


async def test_skill_create_update_and_duplicates(db):
    service = SkillService(db)
    go = await service.create_skill(SkillCreate(name=" Go "))
    assert go.name == "Go"
    await service.create_skill(SkillCreate(name="Rust"))

    with pytest.raises(InvalidOperationError):
        await service.create_skill(SkillCreate(name="go"))
    with pytest.raises(InvalidOperationError):
        await service.update_skill(go.skill_id, SkillUpdate(name="RUST"))

    updated = await service.update_skill(go.skill_id, SkillUpdate(is_active=False))
    assert updated.name == "Go"
    assert updated.is_active is False


async def test_skill_in_use_cannot_be_deleted(db):
    client = await make_user(db)
    python = await make_skill(db, "Python")
    cobol = await make_skill(db, "COBOL")
    job = await make_job(db, client)
    job.skill_links.append(JobSkill(skill=python))
    await db.commit()

    service = SkillService(db)
    with pytest.raises(InvalidOperationError):
        await service.delete_skill(python.skill_id)

    await service.delete_skill(cobol.skill_id)
    assert [s.name for s in await service.list_skills()] == ["Python"]
    with pytest.raises(NotFoundError):
        await service.delete_skill(cobol.skill_id)
