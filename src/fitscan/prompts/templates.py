"""Instruction templates sent to the generative vendor.

Each template spells out the JSON layout the decoders read. The
calorie-consistency rule (kcal ≈ 4·protein + 9·fat + 4·carbs) is given to
the vendor as guidance only; decoded records are not checked against it.
"""

CALORIE_GUIDANCE = (
    "Keep calories consistent with macros: "
    "calories ≈ proteins*4 + fats*9 + carbs*4 (per 100 g)."
)

UNIT_GUIDANCE = """Use the correct unit for each item:
- liquids (soups, borscht, milk, juice, coffee): "ml"
- solid food (bread, meat, vegetables) and powders/spices: "g\""""

FOOD_ITEM_SCHEMA = """{
      "name": "Dish or product name",
      "estimatedWeight": 150,
      "weightType": "g",
      "description": "Short description",
      "nutritionPer100g": {
        "calories": 250,
        "proteins": 12.5,
        "fats": 8.2,
        "carbs": 35.1
      },
      "totalCalories": 375,
      "confidence": 0.8
    }"""

FOOD_ANALYSIS = f"""Analyze this food photo and return the result STRICTLY as JSON.

You are a nutrition expert. Identify:
1. Every dish or product in the photo
2. The approximate weight or volume of each one
3. The right unit (grams for solid food, milliliters for liquids)
4. Nutrition per 100 g / 100 ml for each item
5. The total calories

{UNIT_GUIDANCE}

{CALORIE_GUIDANCE}

Return ONLY JSON, with no extra text:

{{
  "success": true,
  "foodItems": [
    {FOOD_ITEM_SCHEMA}
  ],
  "estimatedCalories": 375,
  "fullDescription": "Description of everything on the plate"
}}

If the photo contains no food, return:
{{
  "success": false,
  "errorMessage": "No food found in the photo"
}}

Be precise with weights and calories. Take portion size into account."""

BODY_ANALYSIS = """Analyze these body photos and return the result STRICTLY as JSON.

You are a fitness and anatomy expert. Estimate:
1. Body-fat percentage
2. Muscle-mass percentage
3. Body type
4. Posture
5. Overall condition
6. Recommendations

Return ONLY JSON:

{
  "success": true,
  "bodyAnalysis": {
    "estimatedBodyFatPercentage": 15.5,
    "estimatedMusclePercentage": 42.0,
    "bodyType": "Mesomorph",
    "postureAnalysis": "Slightly rounded shoulders",
    "overallCondition": "Good physical shape",
    "bmi": 23.4,
    "bmiCategory": "Normal",
    "estimatedWaistCircumference": 80,
    "estimatedChestCircumference": 95,
    "estimatedHipCircumference": 90,
    "exerciseRecommendations": [
      "Strength training 3 times a week",
      "Cardio 2 times a week"
    ],
    "nutritionRecommendations": [
      "Increase protein intake",
      "Watch carbohydrates"
    ],
    "trainingFocus": "Muscle gain"
  },
  "recommendations": [
    "Recommendation 1",
    "Recommendation 2"
  ],
  "fullAnalysis": "Detailed body analysis"
}"""

VOICE_WORKOUT = """Transcribe the audio and extract the workout it describes. Return JSON:

{
  "success": true,
  "transcribedText": "Transcribed speech",
  "workoutData": {
    "type": "strength",
    "startTime": "2024-01-01T10:00:00Z",
    "endTime": "2024-01-01T11:00:00Z",
    "estimatedCalories": 300,
    "strengthData": {
      "name": "Bench press",
      "muscleGroup": "Chest",
      "equipment": "Barbell",
      "workingWeight": 80,
      "restTimeSeconds": 120,
      "sets": [
        {"setNumber": 1, "weight": 80, "reps": 10, "isCompleted": true}
      ]
    },
    "cardioData": null,
    "notes": ["Note 1"]
  }
}

"type" is "strength" or "cardio". For cardio, set "strengthData" to null and fill:
"cardioData": {"cardioType": "Running", "distanceKm": 5.0, "avgPulse": 140, "maxPulse": 170, "avgPace": "5:30"}

If no workout can be recognized, return:
{
  "success": false,
  "errorMessage": "Could not recognize a workout"
}"""

VOICE_FOOD = f"""Transcribe the audio and extract the food it describes. Return JSON:

{{
  "success": true,
  "transcribedText": "Transcribed speech",
  "foodItems": [
    {FOOD_ITEM_SCHEMA}
  ],
  "estimatedTotalCalories": 375
}}

{UNIT_GUIDANCE}

{CALORIE_GUIDANCE}"""
