import pytest
import yaml
from pydantic import ValidationError

from gepa_selection import (
    EliteStrategy,
    NicheRadiusStrategy,
    SelectionConfig,
    Settings,
    TournamentStrategy,
    configure_logging,
    get_settings,
)
from gepa_selection.models import PROFILE_PRESETS, SUPPORTED_PROFILES


def test_defaults():
    config = SelectionConfig()

    assert config.population_size == 20
    assert config.tournament_size == 3
    assert config.elite_strategy == EliteStrategy.PRESERVE_FRONTIER
    assert config.effective_offspring_count == 20
    assert config.sharing_enabled is False


@pytest.mark.parametrize("profile", sorted(SUPPORTED_PROFILES))
def test_every_profile_builds(profile):
    config = SelectionConfig.from_profile(profile)

    for key, value in PROFILE_PRESETS[profile].items():
        assert getattr(config, key) == value


def test_profile_overrides_win():
    config = SelectionConfig.from_profile("exploratory", tournament_size=4, population_size=8)

    assert config.tournament_strategy == TournamentStrategy.DIVERSITY
    assert config.niche_strategy == NicheRadiusStrategy.ADAPTIVE
    assert config.tournament_size == 4
    assert config.population_size == 8


def test_unknown_profile_lists_supported():
    with pytest.raises(ValueError) as excinfo:
        SelectionConfig.from_profile("turbo")
    assert "balanced" in str(excinfo.value)


def test_validators():
    with pytest.raises(ValidationError):
        SelectionConfig(min_tournament_size=5, max_tournament_size=3)
    with pytest.raises(ValidationError):
        SelectionConfig(sharing_objectives=["novelty"])
    with pytest.raises(ValidationError):
        SelectionConfig(sharing_objectives=[])
    with pytest.raises(ValidationError):
        SelectionConfig(elite_ratio=1.5)
    with pytest.raises(ValidationError):
        SelectionConfig(niche_radius=0.0)


def test_from_yaml_with_profile(tmp_path):
    path = tmp_path / "selection.yaml"
    path.write_text(
        yaml.safe_dump({"profile": "exploitative", "population_size": 30, "seed": 11}),
        encoding="utf-8",
    )

    config = SelectionConfig.from_yaml(path, elite_ratio=0.2)

    assert config.tournament_strategy == TournamentStrategy.ADAPTIVE
    assert config.population_size == 30
    assert config.seed == 11
    assert config.elite_ratio == 0.2


def test_from_yaml_plain_mapping_and_errors(tmp_path):
    plain = tmp_path / "plain.yaml"
    plain.write_text("tournament_strategy: diversity\nsharing_enabled: true\n", encoding="utf-8")
    empty = tmp_path / "empty.yaml"
    empty.write_text("", encoding="utf-8")
    listing = tmp_path / "list.yaml"
    listing.write_text("- 1\n- 2\n", encoding="utf-8")

    config = SelectionConfig.from_yaml(plain)

    assert config.tournament_strategy == TournamentStrategy.DIVERSITY
    assert config.sharing_enabled is True
    assert SelectionConfig.from_yaml(empty) == SelectionConfig()
    with pytest.raises(ValueError):
        SelectionConfig.from_yaml(listing)


def test_settings_from_environment(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("GEPA_SELECTION_PROFILE", "exploratory")
    monkeypatch.setenv("GEPA_SELECTION_SEED", "42")

    settings = get_settings()

    assert settings.profile == "exploratory"
    assert settings.seed == 42
    assert settings.log_level == "INFO"
    assert Settings(log_level="DEBUG").log_level == "DEBUG"


def test_configure_logging_returns_sink_id():
    assert isinstance(configure_logging("warning"), int)
    configure_logging("INFO")
