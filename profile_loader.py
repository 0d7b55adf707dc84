"""
Site profile loader.

A site profile holds everything that is specific to the directory site being
scraped: the listing row selector, the per-field selectors, the next-page
control, and the shape of its click-tracking redirect URLs. The built-in
default targets Clutch provider listings; YAML files can override any part.
"""

from typing import List, Dict, Any
from dataclasses import dataclass, field, fields
from pathlib import Path
import yaml


@dataclass
class FieldSelectors:
    """CSS selectors for each field, relative to a listing row."""
    name: str = ".provider__title .provider__title-link"
    website: str = ".website-link__item"
    rating: str = ".sg-rating__number"
    review_count: str = ".sg-rating__reviews"
    location: str = ".location"
    hourly_rate: str = ".hourly-rate"
    min_project_size: str = ".min-project-size"
    employees: str = ".employees-count"
    # Profile link is read from the href of this element
    profile_url: str = ".provider__title .provider__title-link"

    def to_dict(self) -> Dict[str, str]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


@dataclass
class RedirectConfig:
    """Shape of the site's click-tracking URLs."""
    host: str = "clutch.co"
    path_prefix: str = "/redirect"
    target_param: str = "u"
    # Nested destinations on this host only redirect at request time
    ad_click_host: str = "ppc.clutch.co"


@dataclass
class SiteProfile:
    """
    Complete description of a directory site.

    Defines where the listing rows are, how to read each field and how to
    find the next result page.
    """
    row_css: str = ".provider-row"
    next_page_css: str = ".pagination .next a"
    selectors: FieldSelectors = field(default_factory=FieldSelectors)
    redirect: RedirectConfig = field(default_factory=RedirectConfig)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SiteProfile':
        """
        Create a SiteProfile from a dictionary (loaded from YAML).

        Keys that are not present keep their Clutch defaults.

        Raises:
            ValueError: If a field is present but invalid
        """
        profile = cls()

        for key in ('row_css', 'next_page_css'):
            if key in data:
                value = data[key]
                if not isinstance(value, str) or not value.strip():
                    raise ValueError(f"'{key}' must be a non-empty string")
                setattr(profile, key, value)

        if 'selectors' in data:
            selectors_data = data['selectors']
            if not isinstance(selectors_data, dict):
                raise ValueError("'selectors' must be a dictionary")

            known = set(profile.selectors.to_dict())
            for name, css in selectors_data.items():
                if name not in known:
                    raise ValueError(f"Unknown field selector: {name}")
                if not isinstance(css, str) or not css.strip():
                    raise ValueError(f"'selectors.{name}' must be a non-empty string")
                setattr(profile.selectors, name, css)

        if 'redirect' in data:
            redirect_data = data['redirect']
            if not isinstance(redirect_data, dict):
                raise ValueError("'redirect' must be a dictionary")

            for key in ('host', 'path_prefix', 'target_param', 'ad_click_host'):
                if key in redirect_data:
                    value = redirect_data[key]
                    if not isinstance(value, str) or not value.strip():
                        raise ValueError(f"'redirect.{key}' must be a non-empty string")
                    setattr(profile.redirect, key, value.strip())

        return profile


DEFAULT_PROFILE = SiteProfile()


def load_profile(file_path: str) -> SiteProfile:
    """
    Load a site profile from a YAML file.

    Args:
        file_path: Path to YAML profile file

    Returns:
        SiteProfile instance

    Raises:
        FileNotFoundError: If file doesn't exist
        ValueError: If profile is invalid
        yaml.YAMLError: If YAML parsing fails
    """
    path = Path(file_path)

    if not path.exists():
        raise FileNotFoundError(f"Profile file not found: {file_path}")

    with open(path, 'r', encoding='utf-8') as f:
        data = yaml.safe_load(f)

    if data is None:
        return SiteProfile()

    if not isinstance(data, dict):
        raise ValueError("Profile file must contain a YAML dictionary")

    return SiteProfile.from_dict(data)


def validate_profile(profile: SiteProfile) -> List[str]:
    """
    Validate a profile and return a list of warnings (not errors).

    Args:
        profile: Profile to validate

    Returns:
        List of warning messages (empty if no warnings)
    """
    warnings = []

    redirect = profile.redirect
    for label, host in (('redirect.host', redirect.host), ('redirect.ad_click_host', redirect.ad_click_host)):
        if '/' in host or ':' in host:
            warnings.append(f"{label} should be a bare hostname: {host}")

    if not redirect.path_prefix.startswith('/'):
        warnings.append(f"redirect.path_prefix should start with '/': {redirect.path_prefix}")

    if profile.row_css in profile.selectors.to_dict().values():
        warnings.append(f"A field selector equals the row selector: {profile.row_css}")

    return warnings
