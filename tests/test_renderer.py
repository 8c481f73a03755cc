import unittest
from pathlib import Path
import tempfile

from folio.core.contracts.models import ProposedUpdate
from folio.core.render.renderer import SiteRenderer
from folio.utils.errors import RenderError


class TestSiteRenderer(unittest.TestCase):
    def setUp(self):
        self.profile = {
            "name": "Ada & Co <Consulting>",
            "headline": "Builds \"reliable\" systems",
            "positioning": "Fractional CTO",
            "bio": "Twenty years of shipping.",
            "skills": ["Python", "Distributed systems"],
            "contact": {"email": "ada@example.com"},
        }
        self.services = {
            "services": [
                {
                    "name": "Architecture Review",
                    "description": "A week-long review.",
                    "deliverables": ["Report", "Roadmap"],
                    "pricing_model": "Fixed fee",
                }
            ]
        }
        self.portfolio = {
            "projects": [
                {
                    "title": "Payments Rebuild",
                    "timestamp": "2024",
                    "problem": "Outages",
                    "solution": "Event sourcing",
                    "outcome": "Stable",
                    "metrics": "99.99% uptime",
                    "stack": ["Kafka", "Postgres"],
                }
            ]
        }
        self.renderer = SiteRenderer()

    def test_scalar_fields_appear_verbatim(self):
        html = self.renderer.render(self.profile, self.services, self.portfolio)
        for value in ("Ada & Co <Consulting>", 'Builds "reliable" systems', "Fractional CTO",
                      "Architecture Review", "Fixed fee", "Payments Rebuild", "99.99% uptime"):
            self.assertIn(value, html)
        self.assertIn('href="mailto:ada@example.com"', html)

    def test_output_is_stable(self):
        first = self.renderer.render(self.profile, self.services, self.portfolio)
        second = SiteRenderer().render(self.profile, self.services, self.portfolio)
        self.assertEqual(first, second)

    def test_calendar_link_is_optional(self):
        html = self.renderer.render(self.profile, self.services, self.portfolio)
        self.assertNotIn("Book Consultation", html)

        self.profile["contact"]["calendar_link"] = "https://cal.example.com/ada"
        html = self.renderer.render(self.profile, self.services, self.portfolio)
        self.assertIn('href="https://cal.example.com/ada"', html)

    def test_minimal_documents_render(self):
        html = self.renderer.render({"name": "A", "headline": "B"}, {}, {})
        self.assertIn("<h1>A</h1>", html)
        self.assertIn("<h2>B</h2>", html)

    def test_missing_document_is_rejected(self):
        with self.assertRaises(RenderError) as cm:
            self.renderer.render(self.profile, None, self.portfolio)
        self.assertIn("services", str(cm.exception))

    def test_render_proposal(self):
        proposal = ProposedUpdate(
            commit_message="Update headline",
            updates={"profile": {"headline": "Staff Engineer"}},
            human_message="Done.",
        )
        text = self.renderer.render_proposal(proposal)
        self.assertIn("--- profile.json", text)
        self.assertIn('"headline": "Staff Engineer"', text)
        self.assertIn("Commit Message: Update headline", text)

    def test_custom_template_dir(self):
        with tempfile.TemporaryDirectory() as template_dir:
            Path(template_dir, "plain.j2").write_text("{{ profile.name }} / {{ portfolio.projects | length }}")
            renderer = SiteRenderer(template_dir=template_dir, template_name="plain.j2")
            self.assertEqual(renderer.render(self.profile, self.services, self.portfolio), "Ada & Co <Consulting> / 1")
            # The packaged proposal template is still found.
            self.assertIn("Commit Message: x", renderer.render_proposal(ProposedUpdate(commit_message="x", updates={}, human_message="")))

    def test_unknown_template(self):
        renderer = SiteRenderer(template_name="missing.j2")
        with self.assertRaises(RenderError):
            renderer.render(self.profile, self.services, self.portfolio)


if __name__ == "__main__":
    unittest.main()
