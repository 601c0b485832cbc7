from taximeter.main import main

main()
