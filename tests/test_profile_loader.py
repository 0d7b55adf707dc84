"""
Unit tests for site profile loading and validation.
"""

import tempfile
import unittest
from pathlib import Path

import yaml

from profile_loader import SiteProfile, DEFAULT_PROFILE, load_profile, validate_profile

SHIPPED_PROFILE = Path(__file__).parent.parent / "profiles" / "clutch.yaml"


class TestSiteProfile(unittest.TestCase):

    def test_defaults_target_clutch(self):
        self.assertEqual(DEFAULT_PROFILE.row_css, ".provider-row")
        self.assertEqual(DEFAULT_PROFILE.next_page_css, ".pagination .next a")
        self.assertEqual(DEFAULT_PROFILE.redirect.ad_click_host, "ppc.clutch.co")
        self.assertEqual(len(DEFAULT_PROFILE.selectors.to_dict()), 9)

    def test_partial_override_keeps_defaults(self):
        profile = SiteProfile.from_dict({
            'row_css': 'li.listing',
            'selectors': {'rating': '.stars'},
            'redirect': {'ad_click_host': 'ads.example.com'},
        })
        self.assertEqual(profile.row_css, 'li.listing')
        self.assertEqual(profile.selectors.rating, '.stars')
        self.assertEqual(profile.selectors.location, '.location')
        self.assertEqual(profile.redirect.ad_click_host, 'ads.example.com')
        self.assertEqual(profile.redirect.host, 'clutch.co')

    def test_unknown_selector_rejected(self):
        with self.assertRaises(ValueError):
            SiteProfile.from_dict({'selectors': {'phone': '.phone'}})

    def test_empty_values_rejected(self):
        with self.assertRaises(ValueError):
            SiteProfile.from_dict({'row_css': '  '})
        with self.assertRaises(ValueError):
            SiteProfile.from_dict({'redirect': {'target_param': ''}})
        with self.assertRaises(ValueError):
            SiteProfile.from_dict({'selectors': ['.name']})


class TestLoadProfile(unittest.TestCase):

    def test_shipped_profile_matches_default(self):
        self.assertEqual(load_profile(str(SHIPPED_PROFILE)), SiteProfile())

    def test_load_yaml_override(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "profile.yaml"
            path.write_text(yaml.dump({'next_page_css': 'a.next'}), encoding='utf-8')
            profile = load_profile(str(path))
        self.assertEqual(profile.next_page_css, 'a.next')

    def test_empty_file_gives_defaults(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "empty.yaml"
            path.write_text("", encoding='utf-8')
            self.assertEqual(load_profile(str(path)), SiteProfile())

    def test_missing_file(self):
        with self.assertRaises(FileNotFoundError):
            load_profile("/nonexistent/profile.yaml")

    def test_non_dict_yaml(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "list.yaml"
            path.write_text("- a\n- b\n", encoding='utf-8')
            with self.assertRaises(ValueError):
                load_profile(str(path))


class TestValidateProfile(unittest.TestCase):

    def test_default_has_no_warnings(self):
        self.assertEqual(validate_profile(SiteProfile()), [])

    def test_warnings(self):
        profile = SiteProfile.from_dict({
            'redirect': {'ad_click_host': 'https://ppc.clutch.co/', 'path_prefix': 'redirect'},
        })
        warnings = validate_profile(profile)
        self.assertEqual(len(warnings), 2)


if __name__ == '__main__':
    unittest.main()
