"""Pytest configuration and fixtures."""

import pytest

from govscout.database import OpportunityStore


@pytest.fixture
def store():
    """Fresh in-memory store per test."""
    db = OpportunityStore.in_memory()
    yield db
    db.close()


@pytest.fixture
def sample_sam_gov_response():
    """Sample SAM.gov API response with every nested object populated."""
    return {
        "totalRecords": 1,
        "opportunitiesData": [
            {
                "noticeId": "abc123",
                "title": "Army Research Laboratory AI/ML Research",
                "solicitationNumber": "W911NF-24-R-0001",
                "department": "DEPT OF DEFENSE",
                "subTier": "DEPT OF THE ARMY",
                "office": "ARMY RESEARCH LAB",
                "fullParentPathName": "DEPT OF DEFENSE.DEPT OF THE ARMY.ARMY RESEARCH LAB",
                "organizationType": "OFFICE",
                "type": "Solicitation",
                "baseType": "Combined Synopsis/Solicitation",
                "postedDate": "01/15/2024",
                "responseDeadLine": "03/18/2024",
                "archiveDate": "04/02/2024",
                "naicsCode": "541715",
                "classificationCode": "AJ11",
                "typeOfSetAside": "SBA",
                "typeOfSetAsideDescription": "Total Small Business Set-Aside (FAR 19.5)",
                "description": "https://api.sam.gov/prod/opportunities/v1/noticedesc?noticeid=abc123",
                "uiLink": "https://sam.gov/opp/abc123/view",
                "resourceLinks": ["https://sam.gov/api/prod/opps/v3/opportunities/resources/files/1/download"],
                "active": "Yes",
                "award": {
                    "amount": 250000,
                    "date": "2024-02-01",
                    "number": "W911NF-24-C-0042",
                    "awardee": {"name": "Acme Robotics LLC", "duns": "123456789", "ueiSAM": "ACME12345678"},
                },
                "pointOfContact": [
                    {
                        "type": "primary",
                        "fullName": "Jane Smith",
                        "email": "jane.smith@army.mil",
                        "phone": "555-0100",
                        "title": "Contracting Officer",
                    },
                    {
                        "type": "secondary",
                        "fullName": "Bob Jones",
                        "email": "bob.jones@army.mil",
                        "phone": None,
                        "title": None,
                    },
                ],
                "placeOfPerformance": {
                    "city": {"code": "3520", "name": "Adelphi"},
                    "state": {"code": "MD", "name": "Maryland"},
                    "country": {"code": "USA", "name": "UNITED STATES"},
                    "zip": "20783",
                },
            }
        ],
    }
