import io
from reportlab.lib.pagesizes import A4, landscape
from reportlab.platypus import SimpleDocTemplate, Table, TableStyle, Paragraph, Spacer
from reportlab.lib import colors
from reportlab.lib.styles import getSampleStyleSheet


def generate_pdf_for_plan(plan):
    """Generate a PDF table: Day / Breakfast / Lunch / Dinner / Cost / Calories for the provided plan."""
    buf = io.BytesIO()
    doc = SimpleDocTemplate(
        buf, pagesize=landscape(A4),
        rightMargin=20, leftMargin=20, topMargin=20, bottomMargin=20
    )

    styles = getSampleStyleSheet()
    elements = [
        Paragraph(f"Meal Plan - {plan.cuisine.title()} ({plan.diet_type})", styles["Title"]),
        Paragraph(
            f"Budget ${plan.total_budget_usd:.2f} - Cost ${plan.total_cost_usd:.2f} - "
            f"Remaining ${plan.budget_remaining_usd:.2f}",
            styles["Normal"],
        ),
        Spacer(1, 16),
    ]

    data = [["Day", "Breakfast", "Lunch", "Dinner", "Cost (USD)", "Calories"]]
    for day in plan.days:
        data.append([
            day.day_name,
            day.meals["breakfast"].name,
            day.meals["lunch"].name,
            day.meals["dinner"].name,
            f"{day.total_cost_usd:.2f}",
            str(day.total_calories),
        ])
    data.append(["Total", "", "", "", f"{plan.total_cost_usd:.2f}", str(plan.total_calories)])

    table = Table(data, repeatRows=1)
    table.setStyle(TableStyle([
        ("BACKGROUND", (0,0), (-1,0), colors.HexColor("#4CAF50")),
        ("TEXTCOLOR", (0,0), (-1,0), colors.whitesmoke),
        ("ALIGN", (0,0), (-1,-1), "CENTER"),
        ("FONTNAME", (0,0), (-1,0), "Helvetica-Bold"),
        ("FONTNAME", (0,-1), (-1,-1), "Helvetica-Bold"),
        ("FONTSIZE", (0,0), (-1,0), 12),
        ("BOTTOMPADDING", (0,0), (-1,0), 10),
        ("GRID", (0,0), (-1,-1), 0.5, colors.grey),
    ]))

    elements.append(table)
    if plan.used_fallback:
        elements.append(Spacer(1, 12))
        elements.append(Paragraph(
            f"{plan.fallback_meal_count} meals come from fallback data; costs are estimates.",
            styles["Italic"],
        ))
    doc.build(elements)
    return buf.getvalue()
