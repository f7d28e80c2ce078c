"""Curated partner internships loaded by SeedImporter."""

from .types import InternshipInput

PARTNER_INTERNSHIPS: tuple[InternshipInput, ...] = (
    InternshipInput(
        title="Software Development Intern",
        description="Work alongside the web team on internal tools. Basic Python or JavaScript helps.",
        company="Gig Harbor Tech Solutions",
        category="Technology",
        location="Gig Harbor, WA",
        application_link="gigharbortech.com/careers",
    ),
    InternshipInput(
        title="IT Support Assistant",
        description="Help staff with hardware setup, account requests and help-desk tickets.",
        company="Peninsula School District",
        category="Technology",
        location="Gig Harbor, WA",
        application_link="https://www.psd401.net/careers",
    ),
    InternshipInput(
        title="Medical Office Intern",
        description="Shadow front-desk and clinical staff; learn scheduling and patient intake.",
        company="St. Anthony Hospital",
        category="Healthcare",
        location="Gig Harbor, WA",
        application_link="https://www.vmfh.org/careers",
    ),
    InternshipInput(
        title="Veterinary Assistant Intern",
        description="Assist with animal care, kennel duties and client check-in.",
        company="Harbor Animal Clinic",
        category="Healthcare",
        location="Gig Harbor, WA",
        application_link="harboranimalclinic.com",
    ),
    InternshipInput(
        title="Marketing Intern",
        description="Create social media content and help plan community events.",
        company="Gig Harbor Chamber of Commerce",
        category="Business",
        location="Gig Harbor, WA",
        application_link="gigharborchamber.net",
    ),
    InternshipInput(
        title="Bookkeeping Assistant",
        description="Support accounts payable and receivable; spreadsheet skills required.",
        company="Harbor Financial Group",
        category="Business",
        location="Tacoma, WA",
        application_link="",
    ),
    InternshipInput(
        title="Marine Science Intern",
        description="Help with water sampling and shoreline surveys in Puget Sound.",
        company="Harbor WildWatch",
        category="Science",
        location="Gig Harbor, WA",
        application_link="https://harborwildwatch.org",
    ),
    InternshipInput(
        title="Construction Trades Intern",
        description="Rotate through carpentry, electrical and site safety on residential builds.",
        company="Olympic Builders",
        category="Trades",
        location="Port Orchard, WA",
        application_link="olympicbuilders.com/apply",
    ),
)
