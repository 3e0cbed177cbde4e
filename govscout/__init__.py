"""GovScout: local mirror of SAM.gov contract opportunities."""
