from __future__ import annotations

import random

import pytest

from swipematch.core import CompatibilityScorer
from swipematch.core.factors import (
    ExperienceFactor,
    GeographicConfig,
    GeographicFactor,
    IndustryFactor,
    LanguageFactor,
    ReputationFactor,
)
from swipematch.errors import InvalidPairError
from swipematch.schemas import AgentProfile, CompanyProfile, Entity


def default_scorer(**kwargs) -> CompatibilityScorer:
    return CompatibilityScorer(
        factors=[
            GeographicFactor(),
            IndustryFactor(),
            LanguageFactor(),
            ExperienceFactor(),
            ReputationFactor(),
        ],
        **kwargs,
    )


def test_reference_pair_scores_86(make_company, make_agent):
    # The company's interface language is "de" and the agent speaks only "en",
    # so the language factor falls back to 0.3.
    company = make_company(1, language="de", country="DE", industries=["IT"], reputation=5)
    agent = make_agent(
        2,
        countries=["DE", "FR"],
        specializations=["IT"],
        experience_years=5,
        languages=["en"],
        reputation=5,
    )
    scorer = default_scorer()

    assert scorer.score(company, agent) == 86
    assert scorer.score(agent, company) == 86


def test_shared_language_raises_score(make_company, make_agent):
    company = make_company(1, language="en")
    agent = make_agent(2, languages=["en", "fr"])

    assert default_scorer().score(company, agent) == 90


def test_report_contains_factor_breakdown_and_level(make_company, make_agent):
    report = default_scorer().report(make_company(1), make_agent(2))

    assert report.score == 86
    assert report.level == "excellent"
    assert report.factors == {
        "geographic": 100.0,
        "industry": 100.0,
        "language": 30.0,
        "experience": 100.0,
        "reputation": 100.0,
    }


def test_empty_profiles_degrade_gracefully():
    company = Entity(entity_id=1, role="company", profile=CompanyProfile(company_name="Bare"))
    agent = Entity(entity_id=2, role="agent", language="ru", profile=AgentProfile(full_name="Bare"))

    report = default_scorer().report(company, agent)

    assert isinstance(report.score, int)
    assert 0 <= report.score <= 100
    assert report.factors["geographic"] == 30.0
    assert report.factors["industry"] == 50.0
    assert report.factors["language"] == 30.0
    assert report.factors["experience"] == 40.0
    assert report.factors["reputation"] == 0.0


def test_partial_industry_overlap_uses_larger_set(make_company, make_agent):
    factor = IndustryFactor()
    company = make_company(1, industries=["IT", "Retail"])
    agent = make_agent(2, specializations=["IT"])

    assert factor.evaluate(company, agent) == pytest.approx(0.5)


def test_agent_without_languages_falls_back_to_interface_language(make_company, make_agent):
    factor = LanguageFactor()
    company = make_company(1, language="de")
    agent = make_agent(2, language="de", languages=[])

    assert factor.evaluate(company, agent) == pytest.approx(0.5)


@pytest.mark.parametrize(
    ("years", "expected"),
    [(0, 0.4), (1, 0.8), (2, 1.0), (15, 1.0), (16, 0.8), (20, 0.8), (21, 0.6), (40, 0.6)],
)
def test_experience_bands(make_company, make_agent, years, expected):
    factor = ExperienceFactor()

    assert factor.evaluate(make_company(1), make_agent(2, experience_years=years)) == expected


def test_reputation_is_averaged_and_capped(make_company, make_agent):
    factor = ReputationFactor()

    assert factor.evaluate(make_company(1, reputation=4), make_agent(2, reputation=2)) == pytest.approx(0.6)
    assert factor.evaluate(make_company(1, reputation=5), make_agent(2, reputation=5)) == 1.0


def test_uncovered_country_is_deprioritized_not_eliminated(make_company, make_agent):
    factor = GeographicFactor(config=GeographicConfig(uncovered_score=0.3))

    assert factor.evaluate(make_company(1, country="US"), make_agent(2, countries=["DE"])) == 0.3


def test_custom_weights_are_applied(make_company, make_agent):
    scorer = default_scorer(
        weights={"geographic": 1.0, "industry": 0.0, "language": 0.0, "experience": 0.0, "reputation": 0.0}
    )

    assert scorer.score(make_company(1, country="US"), make_agent(2, countries=["DE"])) == 30


def test_same_role_pair_is_rejected(make_company):
    with pytest.raises(InvalidPairError):
        default_scorer().score(make_company(1), make_company(3))


def test_scores_stay_within_bounds_for_varied_profiles():
    rng = random.Random(7)
    tags = ["IT", "Retail", "Energy", "Health", "Logistics"]
    countries = ["DE", "FR", "US", "JP", None]
    scorer = default_scorer()

    for idx in range(200):
        company = Entity(
            entity_id=idx * 2 + 1,
            role="company",
            language=rng.choice(["en", "de", "ja"]),
            reputation=rng.uniform(0, 5),
            profile=CompanyProfile(
                company_name="C",
                country=rng.choice(countries),
                industries=rng.sample(tags, rng.randint(0, 3)),
            ),
        )
        agent = Entity(
            entity_id=idx * 2 + 2,
            role="agent",
            reputation=rng.uniform(0, 5),
            profile=AgentProfile(
                full_name="A",
                countries=[c for c in rng.sample(countries, 2) if c],
                languages=rng.sample(["en", "de", "ja", "fr"], rng.randint(0, 3)),
                specializations=rng.sample(tags, rng.randint(0, 4)),
                experience_years=rng.randint(0, 40),
            ),
        )
        score = scorer.score(company, agent)
        assert isinstance(score, int)
        assert 0 <= score <= 100


@pytest.mark.parametrize(
    ("score", "level"),
    [(100, "excellent"), (80, "excellent"), (79, "good"), (60, "good"), (45, "fair"), (39, "low"), (0, "low")],
)
def test_level_thresholds(score, level):
    assert default_scorer().level_for(score) == level
