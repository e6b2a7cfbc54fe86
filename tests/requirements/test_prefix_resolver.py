"""Tests for reqgraph.requirements.prefix."""


class TestResolvePrefix:
    """Prefix derivation for each scope shape."""

    def test_project_scope(self):
        """No document: REQ- plus the project slug without dashes."""
        from reqgraph.requirements.prefix import resolve_prefix

        assert resolve_prefix("apollo") == "REQ-APOLLO"
        assert resolve_prefix("flight-sw") == "REQ-FLIGHTSW"

    def test_document_short_code(self):
        from reqgraph.requirements.prefix import resolve_prefix

        doc = {"slug": "system-reqs", "shortCode": "SRD"}
        assert resolve_prefix("apollo", doc) == "SRD"

    def test_document_falls_back_to_slug(self):
        """Without a short code the slug is uppercased."""
        from reqgraph.requirements.prefix import resolve_prefix

        assert resolve_prefix("apollo", {"slug": "srd"}) == "SRD"
        assert resolve_prefix("apollo", {"slug": "srd", "shortCode": None}) == "SRD"

    def test_document_and_section(self):
        from reqgraph.requirements.prefix import resolve_prefix

        doc = {"slug": "srd", "shortCode": "SRD"}
        section = {"name": "Power", "shortCode": "PWR"}
        assert resolve_prefix("apollo", doc, section) == "SRD-PWR"

    def test_section_falls_back_to_name(self):
        """Section name is uppercased with spaces removed."""
        from reqgraph.requirements.prefix import resolve_prefix

        doc = {"slug": "srd"}
        section = {"name": "Power Supply"}
        assert resolve_prefix("apollo", doc, section) == "SRD-POWERSUPPLY"

    def test_section_without_document_is_ignored(self):
        from reqgraph.requirements.prefix import resolve_prefix

        assert resolve_prefix("apollo", None, {"name": "Power"}) == "REQ-APOLLO"


class TestRefHelpers:
    """Suffix formatting and ref splitting."""

    def test_format_suffix_pads_to_three(self):
        from reqgraph.requirements.allocator import format_suffix

        assert format_suffix(1) == "001"
        assert format_suffix(42) == "042"
        assert format_suffix(999) == "999"

    def test_format_suffix_widens_past_999(self):
        from reqgraph.requirements.allocator import format_suffix

        assert format_suffix(1000) == "1000"

    def test_split_ref_on_last_dash(self):
        from reqgraph.requirements.allocator import split_ref

        assert split_ref("SRD-PWR-007") == ("SRD-PWR", "007")
        assert split_ref("REQ-APOLLO-001") == ("REQ-APOLLO", "001")

    def test_ref_pattern_matches_exact_prefix(self):
        """SRD must not match refs under SRD-PWR."""
        from reqgraph.requirements.allocator import ref_pattern

        pattern = ref_pattern("SRD")
        assert pattern.match("SRD-005")
        assert pattern.match("SRD-1000")
        assert not pattern.match("SRD-PWR-005")
        assert not pattern.match("SRD-05")
        assert not pattern.match("XSRD-005")
